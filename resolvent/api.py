"""
Using the API
=============

:class:`ResolventAPI` ties a schema, a set of resolvers and the engine
settings together. It parses and validates the request and then executes it::

    import resolvent

    api = resolvent.ResolventAPI(schema='''
        type Query {
            hello(who: String): String
        }
    ''')

    @api.query
    async def hello(parent, args, context):
        return f"Hello {args.get('who')}!"

    result = await api.call('{ hello(who: "world") }')
    assert result.data == {"hello": "Hello world!"}

The resolvers are frozen the first time a request is executed, after that the
set of resolvers can no longer change. If you do not need the helper you can
call :func:`execute_request` with a schema and registry directly.
"""

import asyncio
import functools
import logging
import pathlib
import typing

from graphql import DocumentNode, ExecutionResult, GraphQLError, parse

from .config import Settings
from .context import ExecutionContext
from .errors import InvalidResolver, SyntaxValidationError
from .execution import Middleware, execute
from .middleware import DebugMiddleware
from .registry import FrozenRegistry, ResolverRegistry
from .scalars import ScalarInterface
from .schema import Schema, build_schema, load_schema
from .validation import ValidationResult, validate

LOG = logging.getLogger(__name__)

RootType = typing.TypeVar("RootType", covariant=True)

SchemaSource = typing.Union[
    str,
    DocumentNode,
    pathlib.Path,
    Schema,
    typing.Iterable[typing.Union[str, DocumentNode]],
]


class ParseResults(typing.NamedTuple):
    document_ast: typing.Optional[DocumentNode]
    errors: typing.List[GraphQLError] = []


@functools.lru_cache(maxsize=128)
def parse_document(document: str) -> ParseResults:
    """Parse and store the document in lru_cache."""
    try:
        return ParseResults(parse(document), [])
    except GraphQLError as err:
        return ParseResults(
            None,
            [
                SyntaxValidationError(
                    err.message, source=err.source, positions=err.positions
                )
            ],
        )


async def execute_request(
    schema: Schema,
    registry: typing.Union[FrozenRegistry, ResolverRegistry, None],
    query: typing.Union[str, DocumentNode],
    variables: typing.Optional[typing.Dict[str, typing.Any]] = None,
    context: typing.Optional[ExecutionContext] = None,
    operation_name: typing.Optional[str] = None,
    root_value: typing.Any = None,
    middleware: typing.Optional[typing.Sequence[Middleware]] = None,
    allow_int_to_float: bool = True,
) -> ExecutionResult:
    """Parse, validate and execute a request.

    Syntax and validation errors are returned with `data` set to `None`
    and no resolver is called.
    """
    if isinstance(query, str):
        document, errors = parse_document(query)
        if errors or document is None:
            return ExecutionResult(data=None, errors=errors)
    else:
        document = query

    validation = validate(
        schema,
        document,
        variables=variables,
        operation_name=operation_name,
        allow_int_to_float=allow_int_to_float,
    )
    if validation.errors or validation.query is None:
        return ExecutionResult(data=None, errors=list(validation.errors))

    return await execute(
        validation.query,
        registry,
        root_value=root_value,
        context=context,
        middleware=middleware,
    )


class ResolventAPI(typing.Generic[RootType]):
    """
    Your entry point into the fun filled world of graphql.

    :param schema: GraphQL schema, a str, document, `pathlib.Path`, list of those or a built :class:`Schema`.
    :param context: Context class created for every request.
    :param middleware: List of middleware to enable.
    :param root_value: Parent value for the fields of the root types.
    :param scalars: Custom scalar implementations used by the schema.
    :param resolvers: Registries to include, see :meth:`include_resolver`.
    :param settings: Settings class, defaults to :class:`resolvent.config.Settings`.
    :param logger: Logger used when formatting errors.
    :param level: Log level used when formatting errors.
    """

    _root_value: typing.Optional[RootType]
    _frozen: typing.Optional[FrozenRegistry]

    def __init__(
        self,
        schema: SchemaSource,
        context: typing.Optional[typing.Type[ExecutionContext]] = None,
        middleware: typing.Optional[typing.List[Middleware]] = None,
        root_value: typing.Optional[RootType] = None,
        scalars: typing.Optional[typing.Iterable[ScalarInterface]] = None,
        resolvers: typing.Optional[typing.Iterable[ResolverRegistry]] = None,
        settings: typing.Type[Settings] = Settings,
        logger: typing.Optional[logging.Logger] = None,
        level: int = logging.DEBUG,
    ):
        self._context = context or ExecutionContext
        self._registry = ResolverRegistry()
        self._frozen = None
        self._root_value = root_value
        self.settings = settings
        self.middleware: typing.List[Middleware] = list(middleware or [])
        if settings.debug:
            self.middleware.append(DebugMiddleware())
        self.logger = logger or LOG
        self.level = level
        self.schema = self._build_schema(schema, scalars)
        for registry in resolvers or []:
            self.include_resolver(registry)

    def _build_schema(
        self,
        schema: SchemaSource,
        scalars: typing.Optional[typing.Iterable[ScalarInterface]],
    ) -> Schema:
        if isinstance(schema, Schema):
            return schema
        if isinstance(schema, pathlib.Path):
            return build_schema(load_schema(schema), scalars=scalars)
        return build_schema(schema, scalars=scalars)

    def query(self, field_name: typing.Optional[str] = None) -> typing.Any:
        """Query Resolver

        Short cut to add a resolver for a query, by default it will use the
        name of the function as the `field_name` to be resolved::

            api = resolvent.ResolventAPI(schema="type Query { something: String }")

            @api.query
            async def something(parent, args, context):
                return "hello world"

            @api.query(field_name="something")
            async def some_other_something(parent, args, context):
                return "override the function name"

        :param field_name: Field name to resolve, by default the function name will be used.
        """
        return self.resolver(self.schema.query_type, field_name)

    def mutation(self, field_name: typing.Optional[str] = None) -> typing.Any:
        """Mutation Resolver

        Same as :meth:`query` for the fields of the mutation root type.
        """
        return self.resolver(self.schema.mutation_type or "Mutation", field_name)

    def resolver(
        self, type_name: str, field_name: typing.Optional[str] = None
    ) -> typing.Any:
        """Field Resolver

        Add a field resolver for a given type, by default it will use the
        name of the function as the `field_name` to be resolved::

            api = resolvent.ResolventAPI(schema="type Book { name: String } ...")

            @api.resolver("Book")
            async def name(parent, args, context):
                return "hello world"

        :param type_name: Parent object type name that is being resolved.
        :param field_name: Field name to resolve, by default the function name will be used.
        """

        def decorator(function):
            _name = field_name or function.__name__
            self._check_open()
            self._validate_field(type_name, _name)
            self._registry.register(type_name, _name, function)
            return function

        if callable(field_name):
            function, field_name = field_name, None
            return decorator(function)
        return decorator

    def type_resolver(self, type_name: str) -> typing.Any:
        """Register the function that picks the concrete type of an interface or union."""

        def decorator(function):
            self._check_open()
            self._registry.register_type_resolver(type_name, function)
            return function

        return decorator

    def include_resolver(self, registry: ResolverRegistry):
        """Include a set of resolvers

        This is used to break up a larger application into different modules::

            from resolvent import ResolverRegistry

            books = ResolverRegistry()

            @books.query
            async def books(parent, args, context):
                return await filter_books(**args)

        Then include the registry in the main API::

            api = resolvent.ResolventAPI(schema=pathlib.Path("schema"))
            api.include_resolver(books)

        The resolvers are checked against the schema when they are included.
        """
        self._check_open()
        registry.freeze(self.schema)
        self._registry.include(registry)

    def _check_open(self) -> None:
        if self._frozen is not None:
            raise RuntimeError(
                "Resolvers cannot be registered after the API has executed a request"
            )

    def _validate_field(self, type_name: str, field_name: str) -> None:
        type_def = self.schema.get_type(type_name)
        if type_def is None:
            raise InvalidResolver(f"Invalid type '{type_name}' in resolver decorator")
        if type_def.get_field(field_name) is None:
            raise InvalidResolver(
                f"Invalid field '{type_name}.{field_name}' in resolver decorator"
            )

    @property
    def registry(self) -> FrozenRegistry:
        if self._frozen is None:
            self._frozen = self._registry.freeze(self.schema)
        return self._frozen

    def context(self):
        """Decorator to set the context class::

            @api.context()
            class Context(ExecutionContext):
                def init(self):
                    self.books = BookLoader()
        """

        def decorator(klass):
            self._context = klass
            return klass

        return decorator

    def get_context(
        self,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
        **kwargs,
    ) -> ExecutionContext:
        timeout = self.settings.timeout or None
        return self._context(headers=headers, timeout=timeout, **kwargs)

    def _validate(
        self,
        document: DocumentNode,
        variables: typing.Optional[typing.Dict[str, typing.Any]],
        operation_name: typing.Optional[str],
    ) -> ValidationResult:
        return validate(
            self.schema,
            document,
            variables=variables,
            operation_name=operation_name,
            allow_int_to_float=self.settings.allow_int_to_float,
        )

    @functools.lru_cache(maxsize=128)
    def _validate_text(
        self, document: str, operation_name: typing.Optional[str]
    ) -> ValidationResult:
        """Validate a document without variables and store results in lru_cache."""
        document_ast = parse_document(document).document_ast
        assert document_ast is not None
        return self._validate(document_ast, None, operation_name)

    async def call(
        self,
        document: typing.Union[DocumentNode, str],
        variables: typing.Optional[typing.Dict[str, typing.Any]] = None,
        operation_name: typing.Optional[str] = None,
        context: typing.Optional[ExecutionContext] = None,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
    ) -> ExecutionResult:
        """Preform a query against the schema.

        This is meant to be called in an asyncio.loop, if you are using a
        web framework that is synchronous use the `call_sync` method.
        """
        if isinstance(document, str):
            document_ast, errors = parse_document(document)
            if errors or document_ast is None:
                return ExecutionResult(data=None, errors=errors)
            if variables:
                validation = self._validate(document_ast, variables, operation_name)
            else:
                validation = self._validate_text(document, operation_name)
        else:
            validation = self._validate(document, variables, operation_name)

        if validation.errors or validation.query is None:
            return ExecutionResult(data=None, errors=list(validation.errors))

        if context is None:
            context = self.get_context(headers=headers)

        result = await execute(
            validation.query,
            self.registry,
            root_value=self._root_value,
            context=context,
            middleware=self.middleware,
        )
        if result.errors:
            LOG.debug(f"Request finished with {len(result.errors)} error(s)")
        return result

    def call_sync(
        self,
        document: typing.Union[DocumentNode, str],
        variables: typing.Optional[typing.Dict[str, typing.Any]] = None,
        operation_name: typing.Optional[str] = None,
        context: typing.Optional[ExecutionContext] = None,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
    ) -> ExecutionResult:
        return asyncio.run(
            self.call(document, variables, operation_name, context, headers)
        )
