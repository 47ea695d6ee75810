import pathlib
import runpy

EXAMPLES = pathlib.Path(__file__).parent.parent / "examples"


def load_example(name: str) -> dict:
    return runpy.run_path(str(EXAMPLES / name))


async def test_hello_world():
    hello = load_example("hello.py")

    results = await hello["run_hello"]("sammy")
    assert results == {"hello": "hello sammy!"}


async def test_library_registries_and_interfaces():
    library = load_example("library.py")

    results = await library["api"].call(library["QUERY"])
    assert results.errors is None
    assert results.data == {
        "books": [
            {
                "author": "Frank",
                "movies": [{"director": "Ted", "name": "Lost the Movie"}],
                "name": "Lost",
            }
        ],
        "media": [
            {
                "__typename": "Book",
                "author": "Jane",
                "name": "the Best Movies",
            },
            {
                "__typename": "Movie",
                "director": "Sally",
                "name": "the Best Books",
            },
        ],
    }

    results = await library["api"].call('{ search(text: "best") { name } }')
    assert results.data == {
        "search": [{"name": "the Best Movies"}, {"name": "the Best Books"}]
    }
