import asyncio
import sys

import resolvent

SCHEMA = """
    type Query {
        hello(who: String!): String
    }
"""

# Basic API setup with the schema we defined
api = resolvent.ResolventAPI(schema=SCHEMA)


# The query resolver takes the parent value, the coerced
# arguments and the context. Here we only accept a single
# argument `who`.
@api.query
async def hello(
    parent: None,
    args: dict,
    context: resolvent.ExecutionContext,
) -> str:
    return f"hello {args['who']}!"


# Pre-parse your query to speed up your requests.
SAMPLE_QUERY = resolvent.gql(
    """
    query HelloWorld ($who: String!) {
        hello(who: $who)
    }
"""
)


async def run_hello(who: str = "world"):
    results = await api.call(SAMPLE_QUERY, variables={"who": who})
    print(results.data)
    return results.data


if __name__ == "__main__":
    who = "world"
    if len(sys.argv) > 1:
        who = sys.argv[1]

    asyncio.run(run_hello(who))
