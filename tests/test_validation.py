import time
import typing

import pytest
from graphql import parse

import resolvent
from resolvent import errors
from resolvent.validation import BoundField, BoundFragment


def check(schema, query: str, **kwargs) -> resolvent.ValidationResult:
    return resolvent.validate(schema, parse(query), **kwargs)


def codes(result: resolvent.ValidationResult) -> typing.List[str]:
    return [error.extensions["code"] for error in result.errors]


def test_valid_query_has_no_errors(library_schema):
    result = check(
        library_schema,
        """
        query Library($id: ID!) {
            book(id: $id) {
                id
                title
                author { name books { title } }
            }
            books(filter: {genre: FICTION, tags: ["a", "b"]}) { title pages }
            node(id: "1") { id ... on Book { title } }
            search(text: "dune") {
                __typename
                ... on Movie { title }
                ...BookParts
            }
        }
        fragment BookParts on Book { title rating }
        """,
        variables={"id": "1"},
    )
    assert result.errors == []
    assert result.query is not None
    assert result.query.operation == "query"
    assert result.query.name == "Library"
    assert result.query.variables == {"id": "1"}


def test_fields_are_bound(library_schema):
    result = check(library_schema, '{ first: book(id: 1) { title } books { id } }')
    assert result.errors == []
    first, books = result.query.selections
    assert isinstance(first, BoundField)
    assert first.response_key == "first"
    assert first.name == "book"
    assert first.definition is library_schema.get_field("Query", "book")
    assert first.arguments == {"id": "1"}
    assert books.arguments == {"limit": 10}
    assert books.selections[0].parent_type == "Book"


def test_unknown_field_errors_are_batched(library_schema):
    result = check(
        library_schema,
        """
        {
            book(id: "1") { title publisher }
            movies { title }
            books(limit: "ten") { title }
        }
        """,
    )
    assert result.query is None
    assert codes(result) == [
        "UNKNOWN_FIELD",
        "UNKNOWN_FIELD",
        "ARGUMENT_TYPE_MISMATCH",
    ]
    assert "publisher" in result.errors[0].message
    assert result.errors[0].message == "Cannot query field 'publisher' on type 'Book'."
    assert "movies" in result.errors[1].message
    assert result.errors[0].locations[0].line == 3


def test_argument_errors(library_schema):
    result = check(library_schema, '{ book { title } node(id: "1", extra: 2) { id } }')
    assert codes(result) == ["MISSING_ARGUMENT", "UNKNOWN_ARGUMENT"]


def test_null_for_required_argument(library_schema):
    result = check(library_schema, "{ book(id: null) { title } }")
    assert codes(result) == ["ARGUMENT_TYPE_MISMATCH"]


def test_input_object_argument(library_schema):
    result = check(library_schema, '{ books(filter: {genre: POETRY}) { title } }')
    assert codes(result) == ["ARGUMENT_TYPE_MISMATCH"]

    result = check(library_schema, '{ books(filter: {unknown: 1}) { title } }')
    assert codes(result) == ["ARGUMENT_TYPE_MISMATCH"]

    result = check(library_schema, '{ books(filter: {tags: "one"}) { title } }')
    assert result.errors == []
    (books,) = result.query.selections
    assert books.arguments["filter"] == {"minPages": 0, "tags": ["one"]}


@pytest.mark.parametrize(
    "allow, expected",
    [
        (True, []),
        (False, ["ARGUMENT_TYPE_MISMATCH"]),
    ],
)
def test_int_literal_for_float(library_schema, allow, expected):
    result = check(library_schema, "{ average(value: 3) }", allow_int_to_float=allow)
    assert codes(result) == expected


def test_leaf_and_composite_selections(library_schema):
    result = check(library_schema, "{ book(id: 1) { title { length } author } }")
    assert codes(result) == ["UNEXPECTED_SELECTION_SET", "MISSING_SELECTION_SET"]


def test_typename_has_no_subfields(library_schema):
    result = check(library_schema, "{ __typename { name } }")
    assert codes(result) == ["UNEXPECTED_SELECTION_SET"]


class TestFragments:
    def test_cycle(self, library_schema):
        result = check(
            library_schema,
            """
            { book(id: 1) { ...A } }
            fragment A on Book { title author { books { ...B } } }
            fragment B on Book { ...A }
            """,
        )
        assert codes(result) == ["FRAGMENT_CYCLE"]
        assert "A -> B -> A" in result.errors[0].message

    def test_self_reference(self, library_schema):
        result = check(
            library_schema,
            "{ book(id: 1) { ...A } } fragment A on Book { title ...A }",
        )
        assert codes(result) == ["FRAGMENT_CYCLE"]

    def test_unknown_fragment(self, library_schema):
        result = check(library_schema, "{ book(id: 1) { ...Missing } }")
        assert codes(result) == ["UNKNOWN_FRAGMENT"]

    def test_unknown_type_condition(self, library_schema):
        result = check(library_schema, "{ node(id: 1) { ... on Ghost { id } } }")
        assert codes(result) == ["UNKNOWN_TYPE"]

    def test_impossible_spread(self, library_schema):
        result = check(
            library_schema,
            "{ book(id: 1) { ...M } } fragment M on Movie { title }",
        )
        assert codes(result) == ["INVALID_FRAGMENT_SPREAD"]

    def test_unused_fragment(self, library_schema):
        result = check(
            library_schema,
            "{ book(id: 1) { title } } fragment Unused on Book { title }",
        )
        assert codes(result) == ["VALIDATION_ERROR"]
        assert "never used" in result.errors[0].message

    def test_cycle_in_unused_fragment(self, library_schema):
        result = check(
            library_schema,
            "{ book(id: 1) { title } } fragment Loop on Book { title ...Loop }",
        )
        assert codes(result) == ["FRAGMENT_CYCLE", "VALIDATION_ERROR"]
        assert "Loop -> Loop" in result.errors[0].message

    def test_repeated_spreads_are_validated_once(self, library_schema):
        depth = 40
        fragments = "\n".join(
            f"fragment F{i} on Query {{ ...F{i + 1} ...F{i + 1} }}"
            for i in range(depth)
        )
        query = (
            f"{{ ...F0 }}\n{fragments}\n"
            f"fragment F{depth} on Query {{ books {{ title }} }}"
        )
        started = time.perf_counter()
        result = check(library_schema, query)
        assert time.perf_counter() - started < 2.0
        assert result.errors == []

    def test_fragments_are_expanded(self, library_schema):
        result = check(
            library_schema,
            "{ node(id: 1) { id ...BookParts } } fragment BookParts on Book { title }",
        )
        (node,) = result.query.selections
        field, fragment = node.selections
        assert isinstance(fragment, BoundFragment)
        assert fragment.name == "BookParts"
        assert fragment.type_condition == "Book"
        assert fragment.selections[0].name == "title"


class TestVariables:
    QUERY = """
        query Books($filter: BookFilter, $limit: Int = 5) {
            books(filter: $filter, limit: $limit) { title }
        }
    """

    def test_defaults(self, library_schema):
        result = check(library_schema, self.QUERY)
        assert result.errors == []
        (books,) = result.query.selections
        assert books.arguments == {"limit": 5}

    def test_values_are_coerced(self, library_schema):
        result = check(
            library_schema,
            self.QUERY,
            variables={"filter": {"genre": "HISTORY", "tags": "x"}, "limit": 2},
        )
        assert result.errors == []
        (books,) = result.query.selections
        assert books.arguments == {
            "filter": {"genre": "HISTORY", "minPages": 0, "tags": ["x"]},
            "limit": 2,
        }

    def test_invalid_value(self, library_schema):
        result = check(
            library_schema,
            self.QUERY,
            variables={"filter": {"minPages": "many"}},
        )
        assert codes(result) == ["ARGUMENT_TYPE_MISMATCH"]
        assert "filter.minPages" in result.errors[0].message

    def test_missing_required(self, library_schema):
        result = check(library_schema, "query ($id: ID!) { book(id: $id) { title } }")
        assert codes(result) == ["ARGUMENT_TYPE_MISMATCH"]

    def test_undefined_variable(self, library_schema):
        result = check(library_schema, "{ book(id: $id) { title } }")
        assert codes(result) == ["UNKNOWN_VARIABLE"]

    def test_incompatible_position(self, library_schema):
        result = check(
            library_schema,
            "query ($id: String) { book(id: $id) { title } }",
            variables={"id": "1"},
        )
        assert codes(result) == ["ARGUMENT_TYPE_MISMATCH"]

    def test_unused_variable(self, library_schema):
        result = check(library_schema, "query ($id: ID) { books { title } }")
        assert codes(result) == ["VALIDATION_ERROR"]

    def test_unknown_variable_type(self, library_schema):
        result = check(
            library_schema, "query ($id: Ghost) { book(id: $id) { title } }"
        )
        assert codes(result) == ["UNKNOWN_TYPE"]


class TestDirectives:
    def test_skip_and_include(self, library_schema):
        result = check(
            library_schema,
            """
            query ($withAuthor: Boolean!) {
                book(id: 1) {
                    title @skip(if: true)
                    pages @include(if: false)
                    rating
                    author @include(if: $withAuthor) { name }
                }
            }
            """,
            variables={"withAuthor": True},
        )
        assert result.errors == []
        (book,) = result.query.selections
        assert [field.name for field in book.selections] == ["rating", "author"]

    def test_unknown_directive(self, library_schema):
        result = check(library_schema, "{ book(id: 1) { title @upper } }")
        assert codes(result) == ["UNKNOWN_DIRECTIVE"]


class TestOperations:
    def test_select_by_name(self, library_schema):
        document = """
            query A { books { title } }
            query B($id: ID!) { book(id: $id) { title } }
        """
        result = check(library_schema, document, operation_name="A")
        assert result.errors == []
        assert result.query.name == "A"

    def test_all_operations_are_validated(self, library_schema):
        document = """
            query A { books { title } }
            query B { book(id: 1) { nope } }
        """
        result = check(library_schema, document, operation_name="A")
        assert codes(result) == ["UNKNOWN_FIELD"]

    def test_name_required_for_multiple_operations(self, library_schema):
        result = check(library_schema, "query A { books { id } } query B { books { id } }")
        assert codes(result) == ["UNKNOWN_OPERATION"]

    def test_unknown_operation_name(self, library_schema):
        result = check(library_schema, "query A { books { id } }", operation_name="C")
        assert codes(result) == ["UNKNOWN_OPERATION"]

    def test_mutation(self, library_schema):
        result = check(library_schema, 'mutation { addBook(title: "Dune") { id } }')
        assert result.errors == []
        assert result.query.operation == "mutation"
        assert result.query.root_type == "Mutation"

    def test_unsupported_operation(self, library_schema):
        result = check(library_schema, "subscription { books { id } }")
        assert codes(result) == ["UNKNOWN_OPERATION"]

    def test_duplicate_operation_names(self, library_schema):
        result = check(
            library_schema,
            "query A { books { id } } query A { books { title } }",
            operation_name="A",
        )
        assert "DUPLICATE_DEFINITION" in codes(result)


def test_field_conflicts(library_schema):
    result = check(library_schema, "{ book(id: 1) { title: pages title } }")
    assert codes(result) == ["FIELD_CONFLICT"]

    result = check(library_schema, "{ book(id: 1) { id } book(id: 2) { id } }")
    assert codes(result) == ["FIELD_CONFLICT"]

    result = check(library_schema, "{ book(id: 1) { id } book(id: 1) { title } }")
    assert result.errors == []


def test_field_conflicts_in_merged_selections(library_schema):
    result = check(
        library_schema, "{ book(id: 1) { title } book(id: 1) { title: pages } }"
    )
    assert codes(result) == ["FIELD_CONFLICT"]
    assert "'title' and 'pages'" in result.errors[0].message

    result = check(
        library_schema,
        "{ book(id: 1) { author { name } } book(id: 1) { author { name: id } } }",
    )
    assert codes(result) == ["FIELD_CONFLICT"]

    result = check(
        library_schema,
        "{ book(id: 1) { ...A } book(id: 1) { title } } fragment A on Book { title: pages }",
    )
    assert codes(result) == ["FIELD_CONFLICT"]


def test_field_conflicts_across_parent_types(library_schema):
    result = check(library_schema, "{ node(id: 1) { id ... on Book { id: title } } }")
    assert codes(result) == ["FIELD_CONFLICT"]

    # Author and Book never describe the same value
    result = check(
        library_schema,
        """
        { node(id: 1) {
            ... on Author { label: name }
            ... on Book { label: title }
        } }
        """,
    )
    assert result.errors == []

    result = check(
        library_schema,
        """
        { search(text: "x") {
            ... on Book { size: pages }
            ... on Movie { size: title }
        } }
        """,
    )
    assert codes(result) == ["FIELD_CONFLICT"]
    assert "conflicting types" in result.errors[0].message


def test_validation_is_repeatable(library_schema):
    document = parse("{ books { title } }")
    first = resolvent.validate(library_schema, document)
    second = resolvent.validate(library_schema, document)
    assert first.errors == second.errors == []
    assert first.query is not second.query
