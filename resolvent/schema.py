"""
Schema
------

Build an immutable :class:`Schema` from one or more SDL sources::

    import resolvent

    schema = resolvent.build_schema([
        '''
        type Book {
            name: String
        }

        type Query {
            books: [Book]
        }
        ''',
        '''
        type Movie {
            name: String
        }

        extend type Query {
            movies: [Movie]
        }
        ''',
    ])

Sources are concatenated before they are checked, so the order they are
listed in does not matter. Defining the same type twice is an error, use
`extend type` to add fields to a type defined in another source.
"""

import collections
import dataclasses
import logging
import pathlib
import types
import typing

from graphql import (
    DirectiveDefinitionNode,
    DirectiveNode,
    DocumentNode,
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    GraphQLError,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    ScalarTypeExtensionNode,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    StringValueNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
    concat_ast,
    parse,
)

from .coercion import CoercionError, coerce_literal
from .errors import (
    DuplicateField,
    DuplicateType,
    InterfaceMismatch,
    InvalidTypeUsage,
    MissingRootType,
    SchemaSyntaxError,
    UnknownType,
)
from .scalars import BUILTIN_SCALARS, ScalarInterface, ScalarType
from .types import (
    ArgumentDefinition,
    EnumValueDefinition,
    FieldDefinition,
    TypeDefinition,
    TypeKind,
    TypeReference,
)

LOG = logging.getLogger(__name__)

DEFAULT_DEPRECATION_REASON = "No longer supported"

TypeDefs = typing.Iterable[typing.Union[str, DocumentNode]]

DEFINITION_KINDS: typing.Dict[type, TypeKind] = {
    ObjectTypeDefinitionNode: TypeKind.OBJECT,
    InterfaceTypeDefinitionNode: TypeKind.INTERFACE,
    InputObjectTypeDefinitionNode: TypeKind.INPUT,
    UnionTypeDefinitionNode: TypeKind.UNION,
    EnumTypeDefinitionNode: TypeKind.ENUM,
    ScalarTypeDefinitionNode: TypeKind.SCALAR,
}

EXTENSION_KINDS: typing.Dict[type, TypeKind] = {
    ObjectTypeExtensionNode: TypeKind.OBJECT,
    InterfaceTypeExtensionNode: TypeKind.INTERFACE,
    InputObjectTypeExtensionNode: TypeKind.INPUT,
    UnionTypeExtensionNode: TypeKind.UNION,
    EnumTypeExtensionNode: TypeKind.ENUM,
    ScalarTypeExtensionNode: TypeKind.SCALAR,
}


class PassthroughScalar(ScalarType[typing.Any, typing.Any]):
    """Used for custom scalars declared in the schema without an implementation."""

    @staticmethod
    def serialize(value: typing.Any) -> typing.Any:
        return value

    @staticmethod
    def parse_value(value: typing.Any) -> typing.Any:
        return value


@dataclasses.dataclass(frozen=True, eq=False)
class Schema:
    """The immutable set of types describing the API.

    `implementations` maps an interface name to the names of every object and
    interface type that implements it.
    """

    types: typing.Mapping[str, TypeDefinition]
    query_type: str
    mutation_type: typing.Optional[str] = None
    implementations: typing.Mapping[str, typing.FrozenSet[str]] = dataclasses.field(
        default_factory=lambda: types.MappingProxyType({})
    )

    def __contains__(self, name: str) -> bool:
        return name in self.types

    def get_type(self, name: str) -> typing.Optional[TypeDefinition]:
        return self.types.get(name)

    def get_field(
        self, type_name: str, field_name: str
    ) -> typing.Optional[FieldDefinition]:
        type_def = self.types.get(type_name)
        if type_def is None or type_def.kind not in (
            TypeKind.OBJECT,
            TypeKind.INTERFACE,
        ):
            return None
        return type_def.fields.get(field_name)

    def root_type(self, operation: str) -> typing.Optional[TypeDefinition]:
        """Return the root type for an operation type ('query' or 'mutation')."""
        if operation == "query":
            return self.types[self.query_type]
        if operation == "mutation" and self.mutation_type is not None:
            return self.types[self.mutation_type]
        return None

    def possible_types(self, name: str) -> typing.FrozenSet[str]:
        """Names of the object types a value of type `name` could be."""
        type_def = self.types[name]
        if type_def.kind is TypeKind.OBJECT:
            return frozenset([name])
        if type_def.kind is TypeKind.UNION:
            return type_def.possible_types
        if type_def.kind is TypeKind.INTERFACE:
            return frozenset(
                impl
                for impl in self.implementations.get(name, ())
                if self.types[impl].kind is TypeKind.OBJECT
            )
        return frozenset()

    def is_possible_type(self, abstract_name: str, object_name: str) -> bool:
        return object_name in self.possible_types(abstract_name)

    def types_overlap(self, first: str, second: str) -> bool:
        return bool(self.possible_types(first) & self.possible_types(second))

    def is_subtype(self, sub: TypeReference, sup: TypeReference) -> bool:
        """Can a value of type `sub` be used where `sup` is expected.

        Non-null types are subtypes of their nullable form, lists are
        covariant and object types are subtypes of the interfaces they
        implement and the unions they belong to.
        """
        if sub == sup:
            return True
        if sup.non_null:
            return sub.non_null and self.is_subtype(sub.nullable, sup.nullable)
        if sub.non_null:
            return self.is_subtype(sub.nullable, sup)
        if sup.is_list:
            return sub.is_list and self.is_subtype(
                typing.cast(TypeReference, sub.of_type),
                typing.cast(TypeReference, sup.of_type),
            )
        if sub.is_list:
            return False

        sup_def = self.types.get(typing.cast(str, sup.name))
        if sup_def is None:
            return False
        if sup_def.kind is TypeKind.UNION:
            return sub.name in sup_def.possible_types
        if sup_def.kind is TypeKind.INTERFACE:
            return sub.name in self.implementations.get(sup_def.name, ())
        return False


@dataclasses.dataclass
class _Draft:
    name: str
    kind: TypeKind
    description: typing.Optional[str] = None
    fields: typing.Dict[str, typing.Any] = dataclasses.field(default_factory=dict)
    interfaces: typing.List[str] = dataclasses.field(default_factory=list)
    possible_types: typing.List[str] = dataclasses.field(default_factory=list)
    enum_values: typing.Dict[str, EnumValueDefinition] = dataclasses.field(
        default_factory=dict
    )
    scalar: typing.Optional[ScalarInterface] = None

    def freeze(self) -> TypeDefinition:
        return TypeDefinition(
            name=self.name,
            kind=self.kind,
            description=self.description,
            fields=types.MappingProxyType(dict(self.fields)),
            interfaces=tuple(self.interfaces),
            possible_types=frozenset(self.possible_types),
            enum_values=types.MappingProxyType(dict(self.enum_values)),
            scalar=self.scalar,
        )


def _description(node: typing.Any) -> typing.Optional[str]:
    return node.description.value if node.description else None


def _deprecation_reason(
    directives: typing.Optional[typing.Sequence[DirectiveNode]],
) -> typing.Optional[str]:
    for directive in directives or ():
        if directive.name.value != "deprecated":
            continue
        for argument in directive.arguments or ():
            if argument.name.value == "reason" and isinstance(
                argument.value, StringValueNode
            ):
                return argument.value.value
        return DEFAULT_DEPRECATION_REASON
    return None


def _argument(node: typing.Any) -> ArgumentDefinition:
    return ArgumentDefinition(
        name=node.name.value,
        type=TypeReference.from_ast(node.type),
        description=_description(node),
        default_literal=node.default_value,
    )


class SchemaBuilder:
    """Collects type definitions and turns them into a checked :class:`Schema`."""

    def __init__(self, scalars: typing.Optional[typing.Iterable[ScalarInterface]] = None):
        self.scalars: typing.Dict[str, ScalarInterface] = {
            **BUILTIN_SCALARS,
            **{scalar.name: scalar for scalar in scalars or []},
        }
        self.drafts: typing.Dict[str, _Draft] = {}
        self.roots: typing.Dict[str, str] = {}

    def build(self, document: DocumentNode) -> Schema:
        for name, scalar in BUILTIN_SCALARS.items():
            self.drafts[name] = _Draft(name=name, kind=TypeKind.SCALAR, scalar=scalar)

        extensions = []
        for node in document.definitions:
            if type(node) in DEFINITION_KINDS:
                self._define(node)
            elif type(node) in EXTENSION_KINDS:
                extensions.append(node)
            elif isinstance(node, (SchemaDefinitionNode, SchemaExtensionNode)):
                for operation_type in node.operation_types or ():
                    self.roots[operation_type.operation.value] = (
                        operation_type.type.name.value
                    )
            elif isinstance(node, DirectiveDefinitionNode):
                LOG.debug(f"Ignoring directive definition @{node.name.value}")
            else:
                raise InvalidTypeUsage(
                    f"Unexpected {node.kind} found in schema definitions."
                )

        for node in extensions:
            self._extend(node)

        type_map = {name: draft.freeze() for name, draft in self.drafts.items()}
        schema = self._make_schema(type_map)
        self._check(schema)

        type_map = self._coerce_defaults(type_map)
        LOG.debug(f"Built schema with {len(type_map)} types")
        return self._make_schema(type_map)

    def _make_schema(self, type_map: typing.Dict[str, TypeDefinition]) -> Schema:
        implementations: typing.DefaultDict[str, typing.Set[str]] = (
            collections.defaultdict(set)
        )
        for name, type_def in type_map.items():
            for interface in type_def.interfaces:
                implementations[interface].add(name)

        query_type = self.roots.get("query", "Query")
        mutation_type = self.roots.get("mutation")
        if mutation_type is None and "Mutation" in type_map:
            mutation_type = "Mutation"

        return Schema(
            types=types.MappingProxyType(type_map),
            query_type=query_type,
            mutation_type=mutation_type,
            implementations=types.MappingProxyType(
                {key: frozenset(value) for key, value in implementations.items()}
            ),
        )

    def _define(self, node: typing.Any) -> None:
        name = node.name.value
        if name in self.drafts:
            raise DuplicateType(
                f"There can be only one type named '{name}'."
            )

        kind = DEFINITION_KINDS[type(node)]
        draft = _Draft(name=name, kind=kind, description=_description(node))
        if kind is TypeKind.SCALAR:
            scalar = self.scalars.get(name)
            if scalar is None:
                LOG.debug(f"No implementation for scalar '{name}', values pass through")
                scalar = typing.cast(
                    ScalarInterface, type(name, (PassthroughScalar,), {})
                )
            draft.scalar = scalar

        self.drafts[name] = draft
        self._add_members(draft, node)

    def _extend(self, node: typing.Any) -> None:
        name = node.name.value
        draft = self.drafts.get(name)
        if draft is None:
            raise UnknownType(
                f"Cannot extend type '{name}' because it is not defined."
            )
        kind = EXTENSION_KINDS[type(node)]
        if draft.kind is not kind:
            raise InvalidTypeUsage(
                f"Cannot extend {draft.kind.value} '{name}' as {kind.value}."
            )
        self._add_members(draft, node)

    def _add_members(self, draft: _Draft, node: typing.Any) -> None:
        if draft.kind in (TypeKind.OBJECT, TypeKind.INTERFACE):
            draft.interfaces.extend(
                named.name.value for named in node.interfaces or ()
            )
            for field_node in node.fields or ():
                field_name = field_node.name.value
                if field_name in draft.fields:
                    raise DuplicateField(
                        f"Field '{draft.name}.{field_name}' can only be defined once."
                    )
                arguments: typing.Dict[str, ArgumentDefinition] = {}
                for arg_node in field_node.arguments or ():
                    argument = _argument(arg_node)
                    if argument.name in arguments:
                        raise DuplicateField(
                            f"Argument '{draft.name}.{field_name}({argument.name}:)' "
                            "can only be defined once."
                        )
                    arguments[argument.name] = argument
                draft.fields[field_name] = FieldDefinition(
                    name=field_name,
                    type=TypeReference.from_ast(field_node.type),
                    arguments=types.MappingProxyType(arguments),
                    description=_description(field_node),
                    deprecation_reason=_deprecation_reason(field_node.directives),
                )

        elif draft.kind is TypeKind.INPUT:
            for field_node in node.fields or ():
                argument = _argument(field_node)
                if argument.name in draft.fields:
                    raise DuplicateField(
                        f"Field '{draft.name}.{argument.name}' can only be defined once."
                    )
                draft.fields[argument.name] = argument

        elif draft.kind is TypeKind.UNION:
            draft.possible_types.extend(named.name.value for named in node.types or ())

        elif draft.kind is TypeKind.ENUM:
            for value_node in node.values or ():
                value_name = value_node.name.value
                if value_name in draft.enum_values:
                    raise DuplicateField(
                        f"Enum value '{draft.name}.{value_name}' can only be defined once."
                    )
                draft.enum_values[value_name] = EnumValueDefinition(
                    name=value_name,
                    description=_description(value_node),
                    deprecation_reason=_deprecation_reason(value_node.directives),
                )

    def _check(self, schema: Schema) -> None:
        self._check_roots(schema)
        for type_def in schema.types.values():
            self._check_references(schema, type_def)
        for type_def in schema.types.values():
            for interface in type_def.interfaces:
                self._check_interface(schema, type_def, schema.types[interface])

    def _check_roots(self, schema: Schema) -> None:
        for operation in ("query", "mutation"):
            name = schema.query_type if operation == "query" else schema.mutation_type
            if name is None:
                continue
            root = schema.get_type(name)
            if root is None:
                if operation == "query" and "query" not in self.roots:
                    raise MissingRootType("Schema must define a 'Query' type.")
                raise UnknownType(f"Unknown type '{name}' for {operation} root type.")
            if root.kind is not TypeKind.OBJECT:
                raise InvalidTypeUsage(
                    f"The {operation} root type '{name}' must be an object type."
                )

    def _check_references(self, schema: Schema, type_def: TypeDefinition) -> None:
        def resolve(ref: TypeReference, where: str) -> TypeDefinition:
            found = schema.get_type(ref.named_type)
            if found is None:
                raise UnknownType(
                    f"Unknown type '{ref.named_type}' referenced by '{where}'."
                )
            return found

        kind = type_def.kind
        if kind in (TypeKind.OBJECT, TypeKind.INTERFACE, TypeKind.INPUT):
            if not type_def.fields:
                raise InvalidTypeUsage(
                    f"Type '{type_def.name}' must define one or more fields."
                )

        if kind in (TypeKind.OBJECT, TypeKind.INTERFACE):
            for field_def in type_def.fields.values():
                where = f"{type_def.name}.{field_def.name}"
                if not resolve(field_def.type, where).is_output:
                    raise InvalidTypeUsage(
                        f"The type of '{where}' must be an output type "
                        f"but got: '{field_def.type}'."
                    )
                for argument in field_def.arguments.values():
                    arg_where = f"{where}({argument.name}:)"
                    if not resolve(argument.type, arg_where).is_input:
                        raise InvalidTypeUsage(
                            f"The type of '{arg_where}' must be an input type "
                            f"but got: '{argument.type}'."
                        )
            for interface in type_def.interfaces:
                found = schema.get_type(interface)
                if found is None:
                    raise UnknownType(
                        f"Unknown interface '{interface}' implemented by '{type_def.name}'."
                    )
                if found.kind is not TypeKind.INTERFACE:
                    raise InterfaceMismatch(
                        f"Type '{type_def.name}' can only implement interfaces, "
                        f"'{interface}' is not an interface."
                    )

        elif kind is TypeKind.INPUT:
            for field_def in type_def.fields.values():
                where = f"{type_def.name}.{field_def.name}"
                if not resolve(field_def.type, where).is_input:
                    raise InvalidTypeUsage(
                        f"The type of '{where}' must be an input type "
                        f"but got: '{field_def.type}'."
                    )

        elif kind is TypeKind.UNION:
            if not type_def.possible_types:
                raise InvalidTypeUsage(
                    f"Union type '{type_def.name}' must define one or more member types."
                )
            for member in sorted(type_def.possible_types):
                found = schema.get_type(member)
                if found is None:
                    raise UnknownType(
                        f"Unknown type '{member}' in union '{type_def.name}'."
                    )
                if found.kind is not TypeKind.OBJECT:
                    raise InvalidTypeUsage(
                        f"Union type '{type_def.name}' can only include object types, "
                        f"it cannot include '{member}'."
                    )

        elif kind is TypeKind.ENUM:
            if not type_def.enum_values:
                raise InvalidTypeUsage(
                    f"Enum type '{type_def.name}' must define one or more values."
                )

    def _check_interface(
        self, schema: Schema, type_def: TypeDefinition, interface: TypeDefinition
    ) -> None:
        if type_def.name == interface.name:
            raise InterfaceMismatch(
                f"Type '{type_def.name}' cannot implement itself."
            )

        for transitive in interface.interfaces:
            if transitive not in type_def.interfaces:
                raise InterfaceMismatch(
                    f"Type '{type_def.name}' must implement '{transitive}' "
                    f"because it is implemented by '{interface.name}'."
                )

        for field_name, iface_field in interface.fields.items():
            where = f"{interface.name}.{field_name}"
            field_def = type_def.fields.get(field_name)
            if field_def is None:
                raise InterfaceMismatch(
                    f"Interface field '{where}' expected but "
                    f"'{type_def.name}' does not provide it."
                )
            if not schema.is_subtype(field_def.type, iface_field.type):
                raise InterfaceMismatch(
                    f"Interface field '{where}' expects type '{iface_field.type}' "
                    f"but '{type_def.name}.{field_name}' is type '{field_def.type}'."
                )
            for arg_name, iface_arg in iface_field.arguments.items():
                argument = field_def.arguments.get(arg_name)
                if argument is None:
                    raise InterfaceMismatch(
                        f"Interface field argument '{where}({arg_name}:)' expected "
                        f"but '{type_def.name}.{field_name}' does not provide it."
                    )
                if argument.type != iface_arg.type:
                    raise InterfaceMismatch(
                        f"Interface field argument '{where}({arg_name}:)' expects "
                        f"type '{iface_arg.type}' but "
                        f"'{type_def.name}.{field_name}({arg_name}:)' is type "
                        f"'{argument.type}'."
                    )
            for arg_name, argument in field_def.arguments.items():
                if arg_name not in iface_field.arguments and argument.is_required:
                    raise InterfaceMismatch(
                        f"Argument '{type_def.name}.{field_name}({arg_name}:)' must "
                        f"not be required because it is not defined by '{where}'."
                    )

    def _coerce_defaults(
        self, type_map: typing.Dict[str, TypeDefinition]
    ) -> typing.Dict[str, TypeDefinition]:
        type_map = dict(type_map)
        done: typing.Set[str] = set()

        def coerce(where: str, argument: ArgumentDefinition) -> ArgumentDefinition:
            if argument.default_literal is None:
                return argument
            try:
                value = coerce_literal(argument.default_literal, argument.type, type_map)
            except CoercionError as err:
                raise InvalidTypeUsage(
                    f"Invalid default value for '{where}': {err}"
                ) from err
            return dataclasses.replace(argument, default_value=value)

        # Input types first since defaults of nested inputs are used when
        # coercing the defaults of the types that contain them.
        def finalize_input(name: str, visiting: typing.FrozenSet[str]) -> None:
            if name in done or name in visiting:
                return
            type_def = type_map[name]
            for field_def in type_def.fields.values():
                if type_map[field_def.type.named_type].kind is TypeKind.INPUT:
                    finalize_input(field_def.type.named_type, visiting | {name})
            fields = {
                field_name: coerce(f"{name}.{field_name}", field_def)
                for field_name, field_def in type_def.fields.items()
            }
            type_map[name] = dataclasses.replace(
                type_def, fields=types.MappingProxyType(fields)
            )
            done.add(name)

        for name, type_def in list(type_map.items()):
            if type_def.kind is TypeKind.INPUT:
                finalize_input(name, frozenset())

        for name, type_def in list(type_map.items()):
            if type_def.kind not in (TypeKind.OBJECT, TypeKind.INTERFACE):
                continue
            fields = {}
            for field_name, field_def in type_def.fields.items():
                arguments = {
                    arg_name: coerce(f"{name}.{field_name}({arg_name}:)", argument)
                    for arg_name, argument in field_def.arguments.items()
                }
                fields[field_name] = dataclasses.replace(
                    field_def, arguments=types.MappingProxyType(arguments)
                )
            type_map[name] = dataclasses.replace(
                type_def, fields=types.MappingProxyType(fields)
            )

        return type_map


def maybe_parse(type_def: typing.Union[str, DocumentNode]) -> DocumentNode:
    if isinstance(type_def, str):
        return parse(type_def)
    return type_def


def concat_documents(type_defs: TypeDefs) -> DocumentNode:
    document_list = [maybe_parse(type_def) for type_def in type_defs]

    return concat_ast(document_list)


def build_schema(
    type_defs: typing.Union[str, DocumentNode, TypeDefs],
    scalars: typing.Optional[typing.Iterable[ScalarInterface]] = None,
) -> Schema:
    """
    Build Schema

    Concatenate the sources and build a checked, immutable schema from them.
    Any problem with the definitions raises a :class:`resolvent.errors.SchemaError`,
    the schema is either completely valid or not built at all.

    :param type_defs: schema source or list of sources, either SDL strings or parsed documents
    :param scalars: implementations for custom scalars declared in the schema
    """
    if isinstance(type_defs, (str, DocumentNode)):
        type_defs = [type_defs]

    try:
        document = concat_documents(type_defs)
    except GraphQLError as err:
        raise SchemaSyntaxError(str(err)) from err

    return SchemaBuilder(scalars).build(document)


def load_schema(
    directory: typing.Union[str, pathlib.Path],
) -> typing.List[DocumentNode]:
    """
    Load Schema

    This utility will load schema from a directory or a single pathlib.Path,
    every `*.graphql` file under a directory is loaded.

    :param directory: Directory to load schema files from
    """
    if isinstance(directory, str):
        LOG.debug(f"Converting str {directory} to path object")
        directory = pathlib.Path(directory)

    def parse_file(path: pathlib.Path) -> DocumentNode:
        LOG.debug(f"loading schema from file: {path}")
        try:
            return parse(path.read_text())
        except GraphQLError as err:
            raise SchemaSyntaxError(f"{path}: {err}") from err

    if directory.is_file():
        return [parse_file(directory)]

    LOG.debug(f"Checking for graphql files to load in: '{directory}'")
    return [parse_file(graph) for graph in sorted(directory.glob("**/*.graphql"))]
