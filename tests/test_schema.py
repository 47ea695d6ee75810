import pathlib

import pytest

import resolvent
from resolvent import errors
from resolvent.scalars.util import UUID
from resolvent.types import FieldDefinition, TypeDefinition, TypeKind, TypeReference


def test_build_schema_from_multiple_sources():
    schema = resolvent.build_schema(
        [
            "type Book { name: String } type Query { books: [Book] }",
            "type Movie { name: String } extend type Query { movies: [Movie] }",
        ]
    )
    assert set(schema.types["Query"].fields) == {"books", "movies"}
    assert schema.query_type == "Query"
    assert schema.mutation_type is None
    assert "Movie" in schema


def test_source_order_does_not_matter():
    first = "extend type Query { movies: [Movie] } type Movie { name: String }"
    second = "type Query { books: [String] }"
    forward = resolvent.build_schema([first, second])
    backward = resolvent.build_schema([second, first])
    assert set(forward.types) == set(backward.types)
    assert set(forward.types["Query"].fields) == set(backward.types["Query"].fields)


def test_schema_is_immutable(library_schema):
    with pytest.raises(TypeError):
        library_schema.types["Foo"] = None  # type: ignore[index]

    with pytest.raises(AttributeError):
        library_schema.query_type = "Other"  # type: ignore[misc]


def test_field_types_are_resolved(library_schema):
    books = library_schema.get_field("Query", "books")
    assert books is not None
    assert str(books.type) == "[Book!]!"
    assert books.type.named_type == "Book"
    assert books.arguments["limit"].default_value == 10
    assert library_schema.get_field("Genre", "FICTION") is None


@pytest.mark.parametrize(
    "sdl, missing",
    [
        ("type Query { me: User }", "User"),
        ("type Query { me(filter: Filter): String }", "Filter"),
        ("type Query { me: [[Thing!]] }", "Thing"),
        ("type Query { me: String } union U = Query | Ghost", "Ghost"),
        ("type Query implements Missing { me: String }", "Missing"),
        ("input In { value: Nope } type Query { me(input: In): String }", "Nope"),
    ],
)
def test_unknown_type_reference(sdl, missing):
    with pytest.raises(errors.UnknownType, match=missing):
        resolvent.build_schema(sdl)


def test_duplicate_type_across_sources():
    with pytest.raises(errors.DuplicateType, match="only one type named 'User'"):
        resolvent.build_schema(
            [
                "type User { name: String } type Query { me: User }",
                "type User { email: String }",
            ]
        )


def test_redefining_builtin_scalar():
    with pytest.raises(errors.DuplicateType):
        resolvent.build_schema("scalar String type Query { me: String }")


def test_duplicate_field_from_extension():
    with pytest.raises(errors.DuplicateField, match="Query.me"):
        resolvent.build_schema(
            "type Query { me: String } extend type Query { me: String }"
        )


def test_extend_unknown_type():
    with pytest.raises(
        errors.UnknownType, match="Cannot extend type 'Foo' because it is not defined."
    ):
        resolvent.build_schema("type Query { a: String } extend type Foo { b: String }")


def test_extend_with_wrong_kind():
    with pytest.raises(errors.InvalidTypeUsage):
        resolvent.build_schema("type Query { a: String } extend input Query { b: String }")


def test_missing_query_type():
    with pytest.raises(errors.MissingRootType):
        resolvent.build_schema("type User { name: String }")


def test_schema_definition_roots():
    schema = resolvent.build_schema(
        """
        schema {
            query: RootQuery
            mutation: RootMutation
        }
        type RootQuery { a: String }
        type RootMutation { b: String }
        """
    )
    assert schema.query_type == "RootQuery"
    assert schema.mutation_type == "RootMutation"
    assert schema.root_type("mutation").name == "RootMutation"
    assert schema.root_type("subscription") is None


def test_syntax_error():
    with pytest.raises(errors.SchemaSyntaxError, match="Syntax Error"):
        resolvent.build_schema("type Foo {")


def test_output_type_used_as_argument():
    with pytest.raises(errors.InvalidTypeUsage, match="input type"):
        resolvent.build_schema(
            "type User { name: String } type Query { me(user: User): String }"
        )


def test_input_type_used_as_field():
    with pytest.raises(errors.InvalidTypeUsage, match="output type"):
        resolvent.build_schema("input In { a: String } type Query { me: In }")


def test_union_of_non_object():
    with pytest.raises(errors.InvalidTypeUsage, match="object types"):
        resolvent.build_schema(
            "enum Color { RED } union Thing = Color type Query { thing: Thing }"
        )


class TestInterfaces:
    def test_valid_implementation(self, library_schema):
        assert library_schema.possible_types("Node") == {"Author", "Book", "Movie"}
        assert library_schema.possible_types("SearchResult") == {"Book", "Movie"}
        assert library_schema.is_possible_type("Node", "Book")
        assert not library_schema.is_possible_type("SearchResult", "Author")
        assert library_schema.types_overlap("Node", "SearchResult")

    def test_missing_field(self):
        with pytest.raises(errors.InterfaceMismatch, match="Node.id"):
            resolvent.build_schema(
                """
                interface Node { id: ID! }
                type User implements Node { name: String }
                type Query { me: User }
                """
            )

    def test_covariant_return_type(self):
        schema = resolvent.build_schema(
            """
            interface Node { id: ID  friend: Node  list: [Node] }
            type User implements Node { id: ID!  friend: User  list: [User!]! }
            type Query { me: User }
            """
        )
        assert schema.types["User"].interfaces == ("Node",)

    def test_incompatible_return_type(self):
        with pytest.raises(errors.InterfaceMismatch, match="expects type 'ID!'"):
            resolvent.build_schema(
                """
                interface Node { id: ID! }
                type User implements Node { id: ID }
                type Query { me: User }
                """
            )

    def test_missing_argument(self):
        with pytest.raises(errors.InterfaceMismatch, match="size"):
            resolvent.build_schema(
                """
                interface Pic { url(size: Int): String }
                type Photo implements Pic { url: String }
                type Query { me: Photo }
                """
            )

    def test_extra_required_argument(self):
        with pytest.raises(errors.InterfaceMismatch, match="must not be required"):
            resolvent.build_schema(
                """
                interface Pic { url: String }
                type Photo implements Pic { url(size: Int!): String }
                type Query { me: Photo }
                """
            )

    def test_implementing_non_interface(self):
        with pytest.raises(errors.InterfaceMismatch, match="not an interface"):
            resolvent.build_schema(
                """
                type Base { id: ID }
                type User implements Base { id: ID }
                type Query { me: User }
                """
            )

    def test_transitive_interfaces(self):
        with pytest.raises(errors.InterfaceMismatch, match="must implement 'Node'"):
            resolvent.build_schema(
                """
                interface Node { id: ID }
                interface Resource implements Node { id: ID url: String }
                type Image implements Resource { id: ID url: String }
                type Query { me: Image }
                """
            )


def test_default_values_are_coerced(library_schema):
    book_filter = library_schema.types["BookFilter"]
    assert book_filter.kind is TypeKind.INPUT
    assert book_filter.fields["minPages"].default_value == 0
    assert not book_filter.fields["genre"].has_default


def test_invalid_default_value():
    with pytest.raises(errors.InvalidTypeUsage, match="Invalid default value"):
        resolvent.build_schema('type Query { me(limit: Int = "ten"): String }')


def test_deprecated_fields():
    schema = resolvent.build_schema(
        """
        type Query {
            old: String @deprecated
            older: String @deprecated(reason: "Use `new`.")
            new: String
        }
        """
    )
    fields = schema.types["Query"].fields
    assert fields["old"].deprecation_reason == "No longer supported"
    assert fields["older"].deprecation_reason == "Use `new`."
    assert not fields["new"].is_deprecated


def test_custom_scalar():
    schema = resolvent.build_schema(
        "scalar UUID scalar Other type Query { id: UUID other: Other }",
        scalars=[UUID],
    )
    assert schema.types["UUID"].scalar is UUID
    assert schema.types["Other"].scalar.serialize({"a": 1}) == {"a": 1}


def test_is_subtype(library_schema):
    parse = TypeReference.parse
    assert library_schema.is_subtype(parse("Book!"), parse("Book"))
    assert library_schema.is_subtype(parse("[Book!]!"), parse("[Node]"))
    assert library_schema.is_subtype(parse("Movie"), parse("SearchResult"))
    assert not library_schema.is_subtype(parse("Book"), parse("Book!"))
    assert not library_schema.is_subtype(parse("[Book]"), parse("Book"))


def test_load_schema_directory(tmp_path: pathlib.Path):
    (tmp_path / "nested").mkdir()
    (tmp_path / "query.graphql").write_text("type Query { books: [Book] }")
    (tmp_path / "nested" / "book.graphql").write_text("type Book { name: String }")
    (tmp_path / "notes.txt").write_text("not a schema")

    documents = resolvent.load_schema(tmp_path)
    assert len(documents) == 2

    schema = resolvent.build_schema(documents)
    assert "Book" in schema


def test_load_schema_file(tmp_path: pathlib.Path):
    source = tmp_path / "schema.graphql"
    source.write_text("type Query { hello: String }")
    documents = resolvent.load_schema(str(source))
    assert len(documents) == 1


def test_load_schema_syntax_error(tmp_path: pathlib.Path):
    source = tmp_path / "broken.graphql"
    source.write_text("type Query {")
    with pytest.raises(errors.SchemaSyntaxError, match="broken.graphql"):
        resolvent.load_schema(tmp_path)


def test_definitions_default_to_empty_read_only_mappings():
    field = FieldDefinition(name="title", type=TypeReference(name="String"))
    other = FieldDefinition(name="pages", type=TypeReference(name="Int"))
    assert field.arguments == {}
    assert field.arguments is not other.arguments
    with pytest.raises(TypeError):
        field.arguments["size"] = None  # type: ignore[index]

    type_def = TypeDefinition(name="Empty", kind=TypeKind.OBJECT)
    assert type_def.fields == {}
    assert type_def.enum_values == {}
