"""
Resolver Registry
-----------------

Resolvers are registered once at startup and looked up for every field that
is executed. The :class:`ResolverRegistry` is the builder, once everything is
registered call :meth:`ResolverRegistry.freeze` to get a
:class:`FrozenRegistry` which has no way to change it. This is what the
execution engine uses so concurrent requests can share it without locking.

This also helps to organize your project as it grows. You can put your
resolvers in different modules, for example::

    app/
        api.py     # `api = resolvent.ResolventAPI(schema)`
    resolvers/
        books.py   # `books = resolvent.ResolverRegistry()`
        movies.py  # `movies = resolvent.ResolverRegistry()`

resolvers/books.py::

    import resolvent

    from database.books import get_books

    books = resolvent.ResolverRegistry()

    @books.query('books')
    async def list_books(parent, args, context):
        return await get_books(**args)

resolvers/movies.py::

    import resolvent

    from database.movies import fetch_movies_for_book

    movies = resolvent.ResolverRegistry()

    @movies.resolver('Book', 'movies')
    async def list_movies_for_book(book, args, context):
        return await fetch_movies_for_book(book['id'])

app/api.py::

    import resolvent

    from resolvers.books import books
    from resolvers.movies import movies

    api = resolvent.ResolventAPI(schema=SCHEMA)
    api.include_resolver(books)
    api.include_resolver(movies)

"""

import logging
import types
import typing

from .errors import InvalidResolver
from .schema import Schema
from .types import TypeKind

LOG = logging.getLogger(__name__)

ResolverFn = typing.Callable[..., typing.Any]
TypeResolverFn = typing.Callable[..., typing.Any]
ResolverKey = typing.Tuple[str, str]


class FrozenRegistry:
    """Read only mapping of (type name, field name) to resolver functions."""

    __slots__ = ("_resolvers", "_type_resolvers")

    _resolvers: typing.Mapping[ResolverKey, ResolverFn]
    _type_resolvers: typing.Mapping[str, TypeResolverFn]

    def __init__(
        self,
        resolvers: typing.Optional[typing.Mapping[ResolverKey, ResolverFn]] = None,
        type_resolvers: typing.Optional[typing.Mapping[str, TypeResolverFn]] = None,
    ):
        object.__setattr__(
            self, "_resolvers", types.MappingProxyType(dict(resolvers or {}))
        )
        object.__setattr__(
            self, "_type_resolvers", types.MappingProxyType(dict(type_resolvers or {}))
        )

    def __setattr__(self, name: str, value: typing.Any) -> None:
        raise AttributeError("FrozenRegistry is immutable")

    def __contains__(self, key: ResolverKey) -> bool:
        return key in self._resolvers

    def __len__(self) -> int:
        return len(self._resolvers)

    def __iter__(self) -> typing.Iterator[ResolverKey]:
        return iter(self._resolvers)

    def lookup(self, type_name: str, field_name: str) -> typing.Optional[ResolverFn]:
        return self._resolvers.get((type_name, field_name))

    def lookup_type_resolver(self, type_name: str) -> typing.Optional[TypeResolverFn]:
        return self._type_resolvers.get(type_name)


class ResolverRegistry:
    """Collect resolvers during application setup."""

    def __init__(self):
        self._resolvers: typing.Dict[ResolverKey, ResolverFn] = {}
        self._type_resolvers: typing.Dict[str, TypeResolverFn] = {}

    def register(self, type_name: str, field_name: str, function: ResolverFn) -> None:
        key = (type_name, field_name)
        if key in self._resolvers:
            raise InvalidResolver(
                f"Resolver for '{type_name}.{field_name}' is already registered."
            )
        LOG.debug(f"Registering resolver for {type_name}.{field_name}")
        self._resolvers[key] = function

    def register_type_resolver(self, type_name: str, function: TypeResolverFn) -> None:
        if type_name in self._type_resolvers:
            raise InvalidResolver(
                f"Type resolver for '{type_name}' is already registered."
            )
        self._type_resolvers[type_name] = function

    def query(self, field_name: typing.Union[str, ResolverFn, None] = None) -> typing.Any:
        """Query Resolver

        Short cut to add a resolver for a query, by default it will use the
        name of the function as the `field_name` to be resolved::

            registry = resolvent.ResolverRegistry()

            @registry.query
            async def something(parent, args, context) -> str:
                return "hello world"

            @registry.query(field_name="something")
            async def some_other_something(parent, args, context) -> str:
                return "override the function name"

        :param field_name: Field name to resolve, by default the function name will be used.
        """
        return self.resolver("Query", field_name)

    def mutation(
        self, field_name: typing.Union[str, ResolverFn, None] = None
    ) -> typing.Any:
        """Mutation Resolver

        Same as :meth:`query` for fields on the `Mutation` type.
        """
        return self.resolver("Mutation", field_name)

    def resolver(
        self, type_name: str, field_name: typing.Union[str, ResolverFn, None] = None
    ) -> typing.Any:
        """Field Resolver

        Add a field resolver for a given type, by default it will use the
        name of the function as the `field_name` to be resolved::

            @registry.resolver("Book")
            async def name(book, args, context) -> str:
                return book["title"]

        :param type_name: Parent object type name that is being resolved.
        :param field_name: Field name to resolve, by default the function name will be used.
        """
        if callable(field_name):
            function = field_name
            self.register(type_name, function.__name__, function)
            return function

        def decorator(function: ResolverFn) -> ResolverFn:
            self.register(type_name, field_name or function.__name__, function)
            return function

        return decorator

    def type_resolver(self, type_name: str) -> typing.Any:
        """Resolve the concrete type of an interface or union value.

        The function is called with `(value, context)` and returns the name
        of an object type::

            @registry.type_resolver("SearchResult")
            def search_result_type(value, context) -> str:
                return "Book" if "isbn" in value else "Movie"
        """

        def decorator(function: TypeResolverFn) -> TypeResolverFn:
            self.register_type_resolver(type_name, function)
            return function

        return decorator

    def include(self, other: "ResolverRegistry") -> None:
        """Add every resolver registered in `other` to this registry."""
        for (type_name, field_name), function in other._resolvers.items():
            self.register(type_name, field_name, function)
        for type_name, function in other._type_resolvers.items():
            self.register_type_resolver(type_name, function)

    def freeze(self, schema: typing.Optional[Schema] = None) -> FrozenRegistry:
        """Return the immutable registry used for execution.

        When a schema is given every registered resolver is checked against
        it, a resolver for a type or field that does not exist raises
        :class:`resolvent.errors.InvalidResolver`.
        """
        if schema is not None:
            self._validate(schema)
        return FrozenRegistry(self._resolvers, self._type_resolvers)

    def _validate(self, schema: Schema) -> None:
        for type_name, field_name in self._resolvers:
            type_def = schema.get_type(type_name)
            if type_def is None or type_def.kind is not TypeKind.OBJECT:
                raise InvalidResolver(
                    f"Invalid type '{type_name}' in resolver decorator"
                )
            if field_name not in type_def.fields:
                raise InvalidResolver(
                    f"Invalid field '{type_name}.{field_name}' in resolver decorator"
                )
        for type_name in self._type_resolvers:
            type_def = schema.get_type(type_name)
            if type_def is None or not type_def.is_abstract:
                raise InvalidResolver(
                    f"Invalid abstract type '{type_name}' in type resolver decorator"
                )
