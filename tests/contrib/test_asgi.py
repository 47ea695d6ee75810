import typing

import httpx
import pytest
from fastapi import Depends, FastAPI, Request

import resolvent
from resolvent.contrib.asgi import ExecutionResponse, GraphQLDepends, GraphQLExec


@pytest.fixture()
async def resolvent_app(valid_schema) -> resolvent.ResolventAPI:
    async def resolve_me(args, context) -> typing.Any:
        return {"name": context.principal or context.headers.get("x-name")}

    async def resolve_you(args, context) -> typing.Any:
        raise Exception("I am not working")

    resolvent_app = resolvent.ResolventAPI(
        schema=valid_schema,
        root_value={"me": resolve_me, "you": resolve_you},
    )
    return resolvent_app


@pytest.fixture
async def graph_api(resolvent_app) -> FastAPI:
    api = FastAPI()

    @api.post("/graph")
    async def _root(
        graph_response: typing.Annotated[
            GraphQLExec,
            Depends(GraphQLDepends(resolvent_app)),
        ]
    ) -> ExecutionResponse:
        return await graph_response()

    @api.post("/private")
    async def _private(
        request: Request,
        graph_response: typing.Annotated[
            GraphQLExec,
            Depends(GraphQLDepends(resolvent_app)),
        ],
    ) -> ExecutionResponse:
        return await graph_response(principal=request.headers.get("x-user"))

    return api


async def test_asgi_handlers(graph_api, valid_query_string):

    async with httpx.AsyncClient(
        base_url="http://testclient",
        transport=httpx.ASGITransport(app=graph_api),
    ) as client:
        response = await client.post(
            "/graph",
            json={"query": valid_query_string},
            headers={"X-Name": "Tony Hawk"},
        )
        assert response.status_code == 200, response.text
        data = response.json()
        assert data.get("data") == {"me": {"name": "Tony Hawk"}}
        assert data.get("errors") is None

        response = await client.post(
            "/private",
            json={"query": valid_query_string},
            headers={"X-User": "Rodney"},
        )
        data = response.json()
        assert data.get("data") == {"me": {"name": "Rodney"}}


async def test_asgi_errors(graph_api):

    async with httpx.AsyncClient(
        base_url="http://testclient",
        transport=httpx.ASGITransport(app=graph_api),
    ) as client:
        response = await client.post(
            "/graph",
            json={
                "query": "query Both { me { name } you { name } }",
                "operationName": "Both",
            },
        )
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["data"] == {"me": {"name": None}, "you": None}
        assert data["errors"] == [
            {
                "message": "I am not working",
                "locations": [{"line": 1, "column": 26}],
                "path": ["you"],
                "extensions": {"code": "RESOLVER_ERROR"},
            }
        ]

        response = await client.post("/graph", json={"query": "{ nope }"})
        data = response.json()
        assert data["data"] is None
        assert data["errors"][0]["extensions"] == {"code": "UNKNOWN_FIELD"}
