"""
Input Coercion
--------------

Convert argument literals from a query document, and variable values sent
along with the request, into python values that match the declared input
type. Both raise :class:`CoercionError` with a message describing the first
problem found, the caller decides which error class to report it as.
"""

import collections.abc
import typing

from graphql import (
    EnumValueNode,
    IntValueNode,
    ListValueNode,
    NullValueNode,
    ObjectValueNode,
    Undefined,
    ValueNode,
    VariableNode,
    print_ast,
)

from .types import TypeDefinition, TypeKind, TypeReference

TypeMap = typing.Mapping[str, TypeDefinition]

# Called with the variable node, the type of the position it is used in and
# whether that position has a default. Returns the value or `Undefined`.
VariableLookup = typing.Callable[[VariableNode, TypeReference, bool], typing.Any]


class CoercionError(ValueError):
    """Raised when a value cannot be coerced to the expected type."""


def _format_path(path: typing.Sequence[typing.Union[str, int]]) -> str:
    return ".".join(str(key) for key in path)


def coerce_literal(
    node: ValueNode,
    type_ref: TypeReference,
    types: TypeMap,
    variables: typing.Optional[VariableLookup] = None,
    allow_int_to_float: bool = True,
    has_default: bool = False,
) -> typing.Any:
    """Coerce a literal value node to the python value for `type_ref`.

    Variables are looked up with the `variables` callable, if that is not
    provided the literal must be constant (like a default value in the
    schema). A variable that was not provided returns `Undefined` so the
    caller can fall back to the default for that position.
    """
    if isinstance(node, VariableNode):
        if variables is None:
            raise CoercionError(
                f"Unexpected variable '${node.name.value}' in constant value."
            )
        return variables(node, type_ref, has_default)

    if isinstance(node, NullValueNode):
        if type_ref.non_null:
            raise CoercionError(f"Expected value of type '{type_ref}', found null.")
        return None

    if type_ref.is_list:
        item_type = typing.cast(TypeReference, type_ref.of_type)
        if isinstance(node, ListValueNode):
            items = []
            for item_node in node.values:
                item = coerce_literal(
                    item_node, item_type, types, variables, allow_int_to_float
                )
                if item is Undefined:
                    if item_type.non_null:
                        raise CoercionError(
                            f"Expected value of type '{item_type}', found null."
                        )
                    item = None
                items.append(item)
            return items
        # A single value is accepted where a list is expected.
        return [coerce_literal(node, item_type, types, variables, allow_int_to_float)]

    type_def = types[type_ref.named_type]

    if type_def.kind is TypeKind.INPUT:
        if not isinstance(node, ObjectValueNode):
            raise CoercionError(
                f"Expected value of type '{type_ref}', found {print_ast(node)}."
            )
        provided = {field.name.value: field.value for field in node.fields}
        for name in provided:
            if name not in type_def.fields:
                raise CoercionError(
                    f"Field '{name}' is not defined by type '{type_def.name}'."
                )
        result: typing.Dict[str, typing.Any] = {}
        for name, field_def in type_def.fields.items():
            value = Undefined
            if name in provided:
                value = coerce_literal(
                    provided[name],
                    field_def.type,
                    types,
                    variables,
                    allow_int_to_float,
                    field_def.has_default,
                )
            if value is Undefined:
                if field_def.has_default:
                    value = field_def.default_value
                elif field_def.type.non_null:
                    raise CoercionError(
                        f"Field '{type_def.name}.{name}' of required type "
                        f"'{field_def.type}' was not provided."
                    )
                else:
                    continue
            result[name] = value
        return result

    if type_def.kind is TypeKind.ENUM:
        if not isinstance(node, EnumValueNode) or node.value not in type_def.enum_values:
            raise CoercionError(
                f"Value '{print_ast(node)}' does not exist in '{type_def.name}' enum."
            )
        return node.value

    if not allow_int_to_float and type_def.name == "Float":
        if isinstance(node, IntValueNode):
            raise CoercionError(
                f"Float cannot represent an integer literal: {node.value}"
            )

    scalar = typing.cast(typing.Any, type_def.scalar)
    try:
        return scalar.parse_literal(node)
    except (TypeError, ValueError) as err:
        raise CoercionError(
            f"Expected value of type '{type_ref}', found {print_ast(node)}; {err}"
        ) from err


def coerce_value(
    value: typing.Any,
    type_ref: TypeReference,
    types: TypeMap,
    allow_int_to_float: bool = True,
    path: typing.Tuple[typing.Union[str, int], ...] = (),
) -> typing.Any:
    """Coerce an external input value (like a JSON variable) to `type_ref`.

    Error messages include the path to the invalid value, like
    ``at 'input.password'``.
    """
    where = f" at '{_format_path(path)}'" if path else ""

    if value is None:
        if type_ref.non_null:
            raise CoercionError(
                f"Expected non-nullable type '{type_ref}' not to be null{where}."
            )
        return None

    if type_ref.is_list:
        item_type = typing.cast(TypeReference, type_ref.of_type)
        if isinstance(value, (list, tuple)):
            return [
                coerce_value(item, item_type, types, allow_int_to_float, path + (index,))
                for index, item in enumerate(value)
            ]
        return [coerce_value(value, item_type, types, allow_int_to_float, path)]

    type_def = types[type_ref.named_type]

    if type_def.kind is TypeKind.INPUT:
        if not isinstance(value, collections.abc.Mapping):
            raise CoercionError(
                f"Expected type '{type_def.name}' to be an object{where}."
            )
        for name in value:
            if name not in type_def.fields:
                raise CoercionError(
                    f"Field '{name}' is not defined by type '{type_def.name}'{where}."
                )
        result: typing.Dict[str, typing.Any] = {}
        for name, field_def in type_def.fields.items():
            if name in value:
                result[name] = coerce_value(
                    value[name],
                    field_def.type,
                    types,
                    allow_int_to_float,
                    path + (name,),
                )
            elif field_def.has_default:
                result[name] = field_def.default_value
            elif field_def.type.non_null:
                raise CoercionError(
                    f"Field '{name}' of required type '{field_def.type}' "
                    f"was not provided{where}."
                )
        return result

    if type_def.kind is TypeKind.ENUM:
        if not isinstance(value, str) or value not in type_def.enum_values:
            raise CoercionError(
                f"Value {value!r} does not exist in '{type_def.name}' enum{where}."
            )
        return value

    if not allow_int_to_float and type_def.name == "Float":
        if isinstance(value, int) and not isinstance(value, bool):
            raise CoercionError(f"Float cannot represent an integer value{where}.")

    scalar = typing.cast(typing.Any, type_def.scalar)
    try:
        return scalar.parse_value(value)
    except (TypeError, ValueError) as err:
        raise CoercionError(f"{err}{where}") from err
