"""
Context is how you can share information between resolvers. One context is
created for every request and passed as the third argument to resolvers.
The transport layer fills in the request headers and any authenticated
principal, the engine never looks at them.

Example Resolver::

    async def get_something(parent, args, context: ExecutionContext):
        if not can_access_something(context.principal):
            raise AccessDenied("you do not have permission!")
        return await get_something()

Resolvers should treat the context as read only, the one exception is the
`cache` dict which belongs to the request and can be used to share results
between the resolvers of the same request.

Context Reference
-----------------
"""

import time
import types
import typing

from .types import TypeReference

Path = typing.Tuple[typing.Union[str, int], ...]


class ResolveInfo(typing.NamedTuple):
    """Details about the field being resolved, passed to middleware."""

    field_name: str
    parent_type: str
    return_type: TypeReference
    path: Path
    field_nodes: typing.Tuple[typing.Any, ...]
    operation: str


class ExecutionContext:
    """Default Context Base

    Subclasses can implement the `init` hook to add attributes like data
    loaders that are specific to the application::

        class Context(ExecutionContext):
            def init(self):
                self.books = BookLoader(self.headers.get("authorization"))

    :param headers: Request headers, keys are stored lower case.
    :param principal: Authenticated user or session, opaque to the engine.
    :param deadline: Absolute :func:`time.monotonic` time the request must finish by.
    :param timeout: Seconds from now to use as the deadline, ignored if `deadline` is set.
    :param kwargs: Any extra attributes to set on the context.
    """

    def __init__(
        self,
        *,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
        principal: typing.Any = None,
        deadline: typing.Optional[float] = None,
        timeout: typing.Optional[float] = None,
        **kwargs,
    ):
        self._headers = types.MappingProxyType(
            {key.lower(): value for key, value in (headers or {}).items()}
        )
        self._principal = principal
        if deadline is None and timeout:
            deadline = time.monotonic() + timeout
        self._deadline = deadline
        self.cache: typing.Dict[typing.Any, typing.Any] = {}
        self.handle_kwargs(**kwargs)
        self.init()

    def init(self):
        """Hook for subclasses to initialize an instance of Context."""
        pass

    def handle_kwargs(self, **kwargs) -> None:
        """Hook for subclasses to setup any extra arguments."""
        for key, value in kwargs.items():
            setattr(self, key, value)

    @property
    def headers(self) -> typing.Mapping[str, str]:
        return self._headers

    @property
    def principal(self) -> typing.Any:
        return self._principal

    @property
    def deadline(self) -> typing.Optional[float]:
        return self._deadline

    def remaining(self) -> typing.Optional[float]:
        """Seconds left before the deadline, `None` when there is no deadline."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline
