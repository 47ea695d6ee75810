"""
Schema Types
------------

Immutable building blocks of a :class:`resolvent.schema.Schema`. These are
created by :func:`resolvent.build_schema` and never modified afterwards, so
they can be shared between any number of concurrent requests.
"""

import dataclasses
import enum
import types
import typing

from graphql import (
    ListTypeNode,
    NonNullTypeNode,
    TypeNode,
    Undefined,
    parse_type,
)

from .scalars import ScalarInterface


class TypeKind(enum.Enum):
    OBJECT = "object"
    SCALAR = "scalar"
    ENUM = "enum"
    INTERFACE = "interface"
    UNION = "union"
    INPUT = "input"


LEAF_KINDS = frozenset([TypeKind.SCALAR, TypeKind.ENUM])
COMPOSITE_KINDS = frozenset([TypeKind.OBJECT, TypeKind.INTERFACE, TypeKind.UNION])
ABSTRACT_KINDS = frozenset([TypeKind.INTERFACE, TypeKind.UNION])
INPUT_KINDS = frozenset([TypeKind.SCALAR, TypeKind.ENUM, TypeKind.INPUT])
OUTPUT_KINDS = frozenset(TypeKind) - {TypeKind.INPUT}

EMPTY: typing.Mapping[str, typing.Any] = types.MappingProxyType({})


@dataclasses.dataclass(frozen=True)
class TypeReference:
    """Reference to a named type with optional list and non-null wrapping.

    A named reference sets `name`, a list reference sets `of_type`. So the
    reference `[Int!]!` is::

        TypeReference(of_type=TypeReference(name="Int", non_null=True), non_null=True)
    """

    name: typing.Optional[str] = None
    of_type: typing.Optional["TypeReference"] = None
    non_null: bool = False

    @classmethod
    def from_ast(cls, node: TypeNode) -> "TypeReference":
        if isinstance(node, NonNullTypeNode):
            return dataclasses.replace(cls.from_ast(node.type), non_null=True)
        if isinstance(node, ListTypeNode):
            return cls(of_type=cls.from_ast(node.type))
        return cls(name=node.name.value)  # type: ignore[attr-defined]

    @classmethod
    def parse(cls, value: str) -> "TypeReference":
        """Parse a reference from its string form like `[String!]!`."""
        return cls.from_ast(parse_type(value))

    @property
    def is_list(self) -> bool:
        return self.of_type is not None

    @property
    def named_type(self) -> str:
        ref = self
        while ref.of_type is not None:
            ref = ref.of_type
        return typing.cast(str, ref.name)

    @property
    def nullable(self) -> "TypeReference":
        if not self.non_null:
            return self
        return dataclasses.replace(self, non_null=False)

    def __str__(self) -> str:
        base = f"[{self.of_type}]" if self.of_type is not None else str(self.name)
        return f"{base}!" if self.non_null else base


@dataclasses.dataclass(frozen=True)
class ArgumentDefinition:
    """Argument of a field, also used for the fields of input types.

    `default_value` is `Undefined` when no default was declared, which is
    different from an explicit `null` default.
    """

    name: str
    type: TypeReference
    default_value: typing.Any = Undefined
    description: typing.Optional[str] = None
    default_literal: typing.Any = dataclasses.field(default=None, compare=False)

    @property
    def has_default(self) -> bool:
        return self.default_value is not Undefined

    @property
    def is_required(self) -> bool:
        return self.type.non_null and not self.has_default


@dataclasses.dataclass(frozen=True, eq=False)
class FieldDefinition:
    name: str
    type: TypeReference
    arguments: typing.Mapping[str, ArgumentDefinition] = dataclasses.field(
        default_factory=lambda: types.MappingProxyType({})
    )
    description: typing.Optional[str] = None
    deprecation_reason: typing.Optional[str] = None

    @property
    def is_deprecated(self) -> bool:
        return self.deprecation_reason is not None


@dataclasses.dataclass(frozen=True)
class EnumValueDefinition:
    name: str
    description: typing.Optional[str] = None
    deprecation_reason: typing.Optional[str] = None


@dataclasses.dataclass(frozen=True, eq=False)
class TypeDefinition:
    """A named type in the schema.

    Only the attributes that apply to the `kind` are populated, for example
    `possible_types` is empty for everything but unions.
    """

    name: str
    kind: TypeKind
    fields: typing.Mapping[str, typing.Any] = dataclasses.field(
        default_factory=lambda: types.MappingProxyType({})
    )
    interfaces: typing.Tuple[str, ...] = ()
    possible_types: typing.FrozenSet[str] = frozenset()
    enum_values: typing.Mapping[str, EnumValueDefinition] = dataclasses.field(
        default_factory=lambda: types.MappingProxyType({})
    )
    description: typing.Optional[str] = None
    scalar: typing.Optional[ScalarInterface] = None

    @property
    def is_leaf(self) -> bool:
        return self.kind in LEAF_KINDS

    @property
    def is_composite(self) -> bool:
        return self.kind in COMPOSITE_KINDS

    @property
    def is_abstract(self) -> bool:
        return self.kind in ABSTRACT_KINDS

    @property
    def is_input(self) -> bool:
        return self.kind in INPUT_KINDS

    @property
    def is_output(self) -> bool:
        return self.kind in OUTPUT_KINDS

    def get_field(self, name: str) -> typing.Optional[typing.Any]:
        return self.fields.get(name)

    def __repr__(self) -> str:
        return f"<TypeDefinition {self.kind.value} {self.name}>"


TYPENAME_FIELD = FieldDefinition(
    name="__typename",
    type=TypeReference(name="String", non_null=True),
    description="The name of the object type.",
)
