"""
FastAPI
=======

Serve a :class:`resolvent.ResolventAPI` from a FastAPI application. Install
with the `asgi` extra::

    pip install resolvent[asgi]

"""

import typing

import fastapi
import pydantic

import resolvent


class GraphQLPayload(pydantic.BaseModel):
    """Model representing a GraphQL request body."""

    query: str
    variables: typing.Optional[typing.Dict[str, typing.Any]] = None
    operationName: typing.Optional[str] = None


class ExecutionResponse(pydantic.BaseModel):
    data: typing.Optional[typing.Dict[str, typing.Any]] = None
    errors: typing.Optional[list] = None
    extensions: typing.Optional[typing.Dict[str, typing.Any]] = None


class GraphQLExec(typing.Protocol):
    async def __call__(
        self,
        principal: typing.Any = None,
        **kwargs: typing.Any,
    ) -> ExecutionResponse: ...


class GraphQLDepends:
    """
    FastAPI Dependency to handle GraphQL requests.

    Example::

        from fastapi import Depends, FastAPI
        from resolvent import ResolventAPI
        from resolvent.contrib.asgi import ExecutionResponse, GraphQLDepends, GraphQLExec

        app = FastAPI()
        graph = ResolventAPI(schema=SCHEMA)

        @app.post("/graph")
        async def _root(
            graph_call: typing.Annotated[
                GraphQLExec,
                Depends(GraphQLDepends(graph)),
            ]
        ) -> ExecutionResponse:
            return await graph_call()

    The request headers are copied to the context. Pass the authenticated
    principal or any extra context attributes to the call::

        user = await authenticate(request)
        return await graph_call(principal=user, session=session)
    """

    graph: resolvent.ResolventAPI

    def __init__(self, graph: resolvent.ResolventAPI) -> None:
        self.graph = graph

    async def __call__(
        self, request: fastapi.Request, payload: GraphQLPayload
    ) -> GraphQLExec:

        async def _call_graph(
            principal: typing.Any = None,
            **kwargs: typing.Any,
        ) -> ExecutionResponse:
            context = self.graph.get_context(
                headers=dict(request.headers),
                principal=principal,
                **kwargs,
            )
            results = await self.graph.call(
                document=payload.query,
                variables=payload.variables,
                operation_name=payload.operationName,
                context=context,
            )

            return ExecutionResponse(
                data=results.data,
                errors=resolvent.format_errors(
                    results.errors,
                    logger=self.graph.logger,
                    level=self.graph.level,
                ),
                extensions=results.extensions,
            )

        return _call_graph
