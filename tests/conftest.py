import logging

import pytest
from graphql import DocumentNode

import resolvent

LOG = logging.getLogger("resolvent.tests")


logging.basicConfig(level=logging.DEBUG)


def pytest_runtest_setup(item):
    LOG.info("=======================================================")
    LOG.info(f"Running test: {item.name}")
    LOG.info("=======================================================")


@pytest.fixture
def valid_schema() -> DocumentNode:
    return resolvent.gql(
        """
        type User {
            name: String
        }
        type Query {
            me: User
            you: User
        }
        type Mutation {
            createMe(name: String!): User
        }
        """
    )


@pytest.fixture
def valid_query() -> DocumentNode:
    return resolvent.gql("query Me { me { name } }")


@pytest.fixture
def valid_query_string() -> str:
    return "query Me { me { name } }"


@pytest.fixture
def library_schema() -> resolvent.Schema:
    return resolvent.build_schema(
        """
        interface Node {
            id: ID!
        }

        type Author implements Node {
            id: ID!
            name: String!
            books: [Book!]
        }

        type Book implements Node {
            id: ID!
            title: String!
            author: Author
            pages: Int
            rating: Float
        }

        type Movie implements Node {
            id: ID!
            title: String!
        }

        union SearchResult = Book | Movie

        enum Genre {
            FICTION
            HISTORY
        }

        input BookFilter {
            genre: Genre
            minPages: Int = 0
            tags: [String!]
        }

        type Query {
            book(id: ID!): Book
            books(filter: BookFilter, limit: Int = 10): [Book!]!
            node(id: ID!): Node
            search(text: String!): [SearchResult]
            average(value: Float): Float
        }

        type Mutation {
            addBook(title: String!): Book
        }
        """
    )
