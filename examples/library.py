"""
Library example showing interfaces, type extensions and nested resolvers
split over multiple registries.
"""

import asyncio
import typing

import resolvent

SCHEMA = [
    """
    interface Media {
        name: String!
    }

    type Book implements Media {
        name: String!
        author: String
        movies: [Movie]
    }

    type Movie implements Media {
        name: String!
        director: String
    }

    type Query {
        books: [Book]
        media: [Media]
    }
    """,
    """
    extend type Query {
        search(text: String!): [Media!]!
    }
    """,
]


class Book(typing.NamedTuple):
    name: str
    author: str


class Movie(typing.NamedTuple):
    name: str
    director: str


BOOKS = [Book("Lost", "Frank"), Book("the Best Movies", "Jane")]
MOVIES = [Movie("Lost the Movie", "Ted"), Movie("the Best Books", "Sally")]

books = resolvent.ResolverRegistry()
movies = resolvent.ResolverRegistry()


@books.query("books")
async def list_books(parent, args, context) -> typing.List[Book]:
    return BOOKS[:1]


@books.query
async def media(parent, args, context) -> list:
    return [BOOKS[1], MOVIES[1]]


@books.query
async def search(parent, args, context) -> list:
    text = args["text"].lower()
    return [item for item in [*BOOKS, *MOVIES] if text in item.name.lower()]


@movies.resolver("Book", "movies")
async def movies_for_book(book: Book, args, context) -> typing.List[Movie]:
    await asyncio.sleep(0)
    return [movie for movie in MOVIES if movie.name.startswith(book.name)]


api = resolvent.ResolventAPI(schema=SCHEMA, resolvers=[books, movies])

QUERY = """
    query Library {
        books {
            name
            author
            movies {
                name
                director
            }
        }
        media {
            __typename
            name
            ... on Book { author }
            ... on Movie { director }
        }
    }
"""


if __name__ == "__main__":
    print(api.call_sync(QUERY))
