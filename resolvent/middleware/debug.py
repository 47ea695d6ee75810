"""
Debug Middleware
================

Use this middleware to log details about the queries that you are running.

By default this will use logging.debug and will use the resolvent logger. You
can override that when you setup the middleware.

Example with Resolvent API
--------------------------

::

    import resolvent
    from resolvent.middleware import DebugMiddleware

    api = resolvent.ResolventAPI(
        schema=SCHEMA,
        middleware=[
            DebugMiddleware(),
        ],
    )

Setting `RESOLVENT_DEBUG=true` adds it for you.
"""

import inspect
import logging
import time
import typing

from ..context import ResolveInfo


class DebugMiddleware:
    def __init__(self, logger: typing.Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("resolvent.middleware.debug")

    async def resolve(
        self,
        next_fn: typing.Callable[..., typing.Any],
        parent: typing.Any,
        args: typing.Dict[str, typing.Any],
        context: typing.Any,
        info: ResolveInfo,
    ):
        parent_name = info.parent_type
        field_name = info.field_name
        return_type = info.return_type

        self.logger.debug(
            f"Resolving {parent_name}.{field_name} expecting type {return_type}"
        )

        start_time = time.perf_counter()

        results = next_fn(parent, args, context, info)

        if inspect.isawaitable(results):
            results = await results

        end_time = time.perf_counter()
        total_time = end_time - start_time
        self.logger.debug(
            f"Field {parent_name}.{field_name} resolved: {results!r} in {total_time:.6f} seconds"
        )

        return results
