"""
Execution
---------

Run a :class:`resolvent.validation.ValidatedQuery` against a resolver
registry. Sibling fields are resolved concurrently and joined before the
parent object is assembled, so two slow resolvers on the same level take as
long as the slowest one, not the sum of both.

Resolvers are called with `(parent, args, context)` and can either return a
value or an awaitable::

    async def books(parent, args, context):
        return await context.books.filter(**args)

A field without a registered resolver reads the property with the same name
from the parent value, see :mod:`resolvent.accessors`. If that property is
callable it is called with `(args, context)`.

Errors raised by resolvers do not fail the request. The error is added to the
result with the path of the field and the field is set to `null`. When the
field is non-null the `null` moves up to the closest nullable parent.
"""

import asyncio
import collections.abc
import enum
import functools
import inspect
import logging
import typing

from graphql import ExecutionResult

from . import accessors
from .context import ExecutionContext, Path, ResolveInfo
from .errors import (
    ExecutionError,
    InvalidValue,
    NullOnNonNullField,
    ResolverThrew,
    Timeout,
)
from .registry import FrozenRegistry, ResolverFn, ResolverRegistry
from .types import TYPENAME_FIELD, TypeDefinition, TypeKind, TypeReference
from .validation import BoundField, Selection, ValidatedQuery

LOG = logging.getLogger(__name__)

FieldMap = typing.Dict[str, typing.List[BoundField]]


class Middleware(typing.Protocol):
    def resolve(
        self,
        next_fn: typing.Callable[..., typing.Any],
        parent: typing.Any,
        args: typing.Dict[str, typing.Any],
        context: typing.Any,
        info: ResolveInfo,
    ) -> typing.Any: ...


def default_resolver(field_name: str) -> ResolverFn:
    """Resolver used for fields that have nothing registered."""

    def resolve(parent: typing.Any, args: typing.Dict[str, typing.Any], context: typing.Any):
        value = accessors.get_field(parent, field_name)
        if callable(value):
            return value(args, context)
        return value

    return resolve


class Executor:
    """Executes one query, collecting the errors of every field."""

    def __init__(
        self,
        query: ValidatedQuery,
        registry: FrozenRegistry,
        context: ExecutionContext,
        middleware: typing.Sequence[Middleware] = (),
    ):
        self.query = query
        self.schema = query.schema
        self.registry = registry
        self.context = context
        self.middleware = tuple(middleware)
        self.errors: typing.List[ExecutionError] = []

    async def execute_operation(self, root_value: typing.Any) -> typing.Optional[dict]:
        root = self.schema.types[self.query.root_type]
        fields = self.collect_fields(root, self.query.selections)
        try:
            if self.query.operation == "mutation":
                return await self.execute_fields_serially(root, root_value, fields, ())
            return await self.execute_fields(root, root_value, fields, ())
        except ExecutionError as error:
            self.errors.append(error)
            return None

    def collect_fields(
        self,
        type_def: TypeDefinition,
        selections: typing.Iterable[Selection],
        fields: typing.Optional[FieldMap] = None,
        visited: typing.Optional[typing.Set[str]] = None,
    ) -> FieldMap:
        """Group the fields that apply to `type_def` by response key.

        A named fragment is only expanded the first time it is found.
        """
        if fields is None:
            fields = {}
        if visited is None:
            visited = set()
        for selection in selections:
            if isinstance(selection, BoundField):
                fields.setdefault(selection.response_key, []).append(selection)
                continue
            if selection.name is not None:
                if selection.name in visited:
                    continue
                visited.add(selection.name)
            if self.fragment_applies(type_def, selection.type_condition):
                self.collect_fields(type_def, selection.selections, fields, visited)
        return fields

    def fragment_applies(
        self, type_def: TypeDefinition, condition: typing.Optional[str]
    ) -> bool:
        if condition is None or condition == type_def.name:
            return True
        if self.schema.types[condition].is_abstract:
            return self.schema.is_possible_type(condition, type_def.name)
        return False

    async def execute_fields(
        self,
        parent_type: TypeDefinition,
        source: typing.Any,
        fields: FieldMap,
        path: Path,
    ) -> dict:
        keys = list(fields)
        results = await asyncio.gather(
            *(
                self.resolve_field(parent_type, source, fields[key], path + (key,))
                for key in keys
            ),
            return_exceptions=True,
        )
        return dict(zip(keys, self._join(results)))

    async def execute_fields_serially(
        self,
        parent_type: TypeDefinition,
        source: typing.Any,
        fields: FieldMap,
        path: Path,
    ) -> dict:
        data = {}
        for key, field_list in fields.items():
            data[key] = await self.resolve_field(
                parent_type, source, field_list, path + (key,)
            )
        return data

    def _join(self, results: typing.List[typing.Any]) -> typing.List[typing.Any]:
        """Check the results of concurrent completions.

        A non-null failure is raised once all siblings are done, the value of
        the siblings is discarded but any other failures are still reported.
        """
        propagated: typing.Optional[ExecutionError] = None
        for result in results:
            if isinstance(result, ExecutionError):
                if propagated is None:
                    propagated = result
                else:
                    self.errors.append(result)
            elif isinstance(result, BaseException):
                raise result
        if propagated is not None:
            raise propagated
        return results

    def handle_field_error(
        self, error: ExecutionError, return_type: TypeReference
    ) -> None:
        if return_type.non_null:
            raise error
        self.errors.append(error)
        return None

    async def resolve_field(
        self,
        parent_type: TypeDefinition,
        source: typing.Any,
        field_list: typing.List[BoundField],
        path: Path,
    ) -> typing.Any:
        field = field_list[0]
        definition = field.definition
        if definition is TYPENAME_FIELD:
            return parent_type.name

        info = ResolveInfo(
            field_name=field.name,
            parent_type=parent_type.name,
            return_type=definition.type,
            path=path,
            field_nodes=tuple(f.node for f in field_list),
            operation=self.query.operation,
        )
        try:
            result = await self.call_resolver(source, field, info)
            return await self.complete_value(definition.type, field_list, info, path, result)
        except ExecutionError as error:
            return self.handle_field_error(error, definition.type)

    def _with_middleware(self, resolver: ResolverFn) -> typing.Callable[..., typing.Any]:
        def call(parent, args, context, info):
            return resolver(parent, args, context)

        next_fn: typing.Callable[..., typing.Any] = call
        for middleware in reversed(self.middleware):
            next_fn = functools.partial(middleware.resolve, next_fn)
        return next_fn

    async def call_resolver(
        self, source: typing.Any, field: BoundField, info: ResolveInfo
    ) -> typing.Any:
        label = f"{info.parent_type}.{info.field_name}"
        if self.context.expired():
            raise Timeout(
                f"Timed out before resolving field '{label}'.",
                info.field_nodes,
                info.path,
            )

        resolver = self.registry.lookup(info.parent_type, info.field_name)
        if resolver is None:
            resolver = default_resolver(info.field_name)

        try:
            result = self._with_middleware(resolver)(
                source, dict(field.arguments), self.context, info
            )
            if inspect.isawaitable(result):
                result = await self._await_result(result, info, label)
        except ExecutionError:
            raise
        except Exception as err:
            LOG.debug(f"Resolver for {label} raised {err!r}")
            raise ResolverThrew(
                str(err), info.field_nodes, info.path, original_error=err
            ) from err

        return result

    async def _await_result(
        self, awaitable: typing.Awaitable[typing.Any], info: ResolveInfo, label: str
    ) -> typing.Any:
        remaining = self.context.remaining()
        if remaining is None:
            return await awaitable

        task = asyncio.ensure_future(awaitable)
        try:
            done, _ = await asyncio.wait({task}, timeout=remaining)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if not done:
            task.cancel()
            LOG.debug(f"Field {label} at {list(info.path)} passed the deadline")
            raise Timeout(
                f"Timed out resolving field '{label}'.",
                info.field_nodes,
                info.path,
            )
        return task.result()

    async def complete_value(
        self,
        return_type: TypeReference,
        field_list: typing.List[BoundField],
        info: ResolveInfo,
        path: Path,
        result: typing.Any,
    ) -> typing.Any:
        if isinstance(result, Exception):
            raise ResolverThrew(
                str(result), info.field_nodes, path, original_error=result
            )

        if result is None:
            if return_type.non_null:
                raise NullOnNonNullField(
                    "Cannot return null for non-nullable field "
                    f"'{info.parent_type}.{info.field_name}'.",
                    info.field_nodes,
                    path,
                )
            return None

        value_type = return_type.nullable
        if value_type.is_list:
            return await self.complete_list(value_type, field_list, info, path, result)

        type_def = self.schema.types[value_type.named_type]
        if type_def.is_leaf:
            return self.serialize_leaf(type_def, info, path, result)

        if type_def.is_abstract:
            type_def = await self.resolve_abstract_type(type_def, info, path, result)

        fields: FieldMap = {}
        visited: typing.Set[str] = set()
        for field in field_list:
            self.collect_fields(type_def, field.selections, fields, visited)
        return await self.execute_fields(type_def, result, fields, path)

    async def complete_list(
        self,
        list_type: TypeReference,
        field_list: typing.List[BoundField],
        info: ResolveInfo,
        path: Path,
        result: typing.Any,
    ) -> typing.List[typing.Any]:
        if isinstance(result, (str, bytes, collections.abc.Mapping)) or not isinstance(
            result, collections.abc.Iterable
        ):
            raise InvalidValue(
                "Expected Iterable, but did not find one for field "
                f"'{info.parent_type}.{info.field_name}'.",
                info.field_nodes,
                path,
            )

        item_type = typing.cast(TypeReference, list_type.of_type)

        async def complete_item(index: int, item: typing.Any) -> typing.Any:
            try:
                return await self.complete_value(
                    item_type, field_list, info, path + (index,), item
                )
            except ExecutionError as error:
                return self.handle_field_error(error, item_type)

        results = await asyncio.gather(
            *(complete_item(index, item) for index, item in enumerate(result)),
            return_exceptions=True,
        )
        return self._join(results)

    def serialize_leaf(
        self,
        type_def: TypeDefinition,
        info: ResolveInfo,
        path: Path,
        result: typing.Any,
    ) -> typing.Any:
        if type_def.kind is TypeKind.ENUM:
            name = result.name if isinstance(result, enum.Enum) else result
            if not isinstance(name, str) or name not in type_def.enum_values:
                raise InvalidValue(
                    f"Enum '{type_def.name}' cannot represent value: {result!r}",
                    info.field_nodes,
                    path,
                )
            return name

        scalar = typing.cast(typing.Any, type_def.scalar)
        try:
            return scalar.serialize(result)
        except (TypeError, ValueError) as err:
            raise InvalidValue(
                str(err), info.field_nodes, path, original_error=err
            ) from err

    async def resolve_abstract_type(
        self,
        type_def: TypeDefinition,
        info: ResolveInfo,
        path: Path,
        result: typing.Any,
    ) -> TypeDefinition:
        type_resolver = self.registry.lookup_type_resolver(type_def.name)
        if type_resolver is None:
            type_name = accessors.typename_of(result)
        else:
            try:
                type_name = type_resolver(result, self.context)
                if inspect.isawaitable(type_name):
                    type_name = await type_name
            except Exception as err:
                raise ResolverThrew(
                    str(err), info.field_nodes, path, original_error=err
                ) from err

        if not isinstance(type_name, str) or not self.schema.is_possible_type(
            type_def.name, type_name
        ):
            raise InvalidValue(
                f"Abstract type '{type_def.name}' must resolve to an object type "
                f"at runtime for field '{info.parent_type}.{info.field_name}'. "
                f"Got: {type_name!r}.",
                info.field_nodes,
                path,
            )
        return self.schema.types[type_name]


async def execute(
    query: ValidatedQuery,
    registry: typing.Union[FrozenRegistry, ResolverRegistry, None] = None,
    root_value: typing.Any = None,
    context: typing.Optional[ExecutionContext] = None,
    middleware: typing.Optional[typing.Sequence[Middleware]] = None,
) -> ExecutionResult:
    """Execute a validated query.

    :param query: The result of :func:`resolvent.validate`.
    :param registry: Resolvers to use, a :class:`ResolverRegistry` is frozen first.
    :param root_value: Parent value for the fields of the root type.
    :param context: Per request context passed to every resolver.
    :param middleware: Middleware wrapping every resolver call.
    """
    if isinstance(registry, ResolverRegistry):
        registry = registry.freeze(query.schema)

    executor = Executor(
        query,
        registry or FrozenRegistry(),
        context or ExecutionContext(),
        middleware or (),
    )
    data = await executor.execute_operation(root_value)
    return ExecutionResult(data=data, errors=list(executor.errors) or None)
