"""
Document Validation
-------------------

Check a parsed query document against the schema before anything runs::

    result = validate(schema, parse("query Me { me { name } }"))
    if result.errors:
        return ExecutionResult(data=None, errors=result.errors)

    data = await execute(result.query, registry)

Every problem in the document is reported, validation does not stop at the
first error. When the document is valid the result holds a
:class:`ValidatedQuery` for the selected operation: the same tree as the
document with fragments expanded, `@skip` and `@include` applied, each field
bound to its :class:`resolvent.types.FieldDefinition` and the arguments
coerced to python values (with defaults filled in).
"""

import dataclasses
import logging
import types
import typing

from graphql import (
    ArgumentNode,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    NamedTypeNode,
    Node,
    OperationDefinitionNode,
    SelectionSetNode,
    Undefined,
    VariableNode,
)

from .coercion import CoercionError, coerce_literal, coerce_value
from .errors import (
    ArgumentTypeMismatch,
    DuplicateDefinition,
    FieldConflict,
    FragmentCycle,
    InvalidFragmentSpread,
    MissingArgument,
    MissingSelectionSet,
    UnexpectedSelectionSet,
    UnknownArgument,
    UnknownDirective,
    UnknownField,
    UnknownFragment,
    UnknownOperation,
    UnknownTypeName,
    UnknownVariable,
    ValidationError,
)
from .schema import Schema
from .types import (
    EMPTY,
    TYPENAME_FIELD,
    ArgumentDefinition,
    FieldDefinition,
    TypeDefinition,
    TypeKind,
    TypeReference,
)

LOG = logging.getLogger(__name__)

CONDITION_ARGUMENTS: typing.Mapping[str, ArgumentDefinition] = types.MappingProxyType(
    {"if": ArgumentDefinition(name="if", type=TypeReference(name="Boolean", non_null=True))}
)

# Stand in for variable values while checking operations that are not executed.
UNBOUND = object()


@dataclasses.dataclass(frozen=True, eq=False)
class BoundField:
    response_key: str
    name: str
    parent_type: str
    definition: FieldDefinition
    arguments: typing.Mapping[str, typing.Any]
    selections: typing.Tuple["Selection", ...]
    node: FieldNode


@dataclasses.dataclass(frozen=True, eq=False)
class BoundFragment:
    """Inline fragment or expanded fragment spread.

    `type_condition` is `None` for inline fragments without a condition,
    those always apply.
    """

    type_condition: typing.Optional[str]
    selections: typing.Tuple["Selection", ...]
    name: typing.Optional[str] = None


Selection = typing.Union[BoundField, BoundFragment]


@dataclasses.dataclass(frozen=True, eq=False)
class ValidatedQuery:
    schema: Schema
    operation: str
    name: typing.Optional[str]
    root_type: str
    selections: typing.Tuple[Selection, ...]
    variables: typing.Mapping[str, typing.Any]
    document: DocumentNode


class ValidationResult(typing.NamedTuple):
    query: typing.Optional[ValidatedQuery]
    errors: typing.List[ValidationError] = []


def _collect_response_fields(
    selections: typing.Iterable[Selection],
    fields: typing.Optional[typing.Dict[str, typing.List[BoundField]]] = None,
    visited: typing.Optional[typing.Set[str]] = None,
) -> typing.Dict[str, typing.List[BoundField]]:
    """Group fields by response key, each named fragment is expanded once."""
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
        _collect_response_fields(selection.selections, fields, visited)
    return fields


def _fragment_spreads(selection_set: SelectionSetNode) -> typing.List[FragmentSpreadNode]:
    spreads: typing.List[FragmentSpreadNode] = []
    for node in selection_set.selections:
        if isinstance(node, FragmentSpreadNode):
            spreads.append(node)
        elif node.selection_set is not None:
            spreads.extend(_fragment_spreads(node.selection_set))
    return spreads


class DocumentValidator:
    """Walks a document collecting every error found.

    A validator is used for a single document, create a new one for each
    request.
    """

    def __init__(
        self,
        schema: Schema,
        document: DocumentNode,
        allow_int_to_float: bool = True,
    ):
        self.schema = schema
        self.document = document
        self.allow_int_to_float = allow_int_to_float
        self.errors: typing.List[ValidationError] = []
        self.operations: typing.List[OperationDefinitionNode] = []
        self.fragments: typing.Dict[str, FragmentDefinitionNode] = {}
        self.used_fragments: typing.Set[str] = set()
        self._reported: typing.Set[typing.Tuple] = set()
        self._reported_cycles: typing.Set[typing.FrozenSet[str]] = set()

        # State for the operation being walked
        self.variable_types: typing.Dict[str, TypeReference] = {}
        self.variable_defaults: typing.Set[str] = set()
        self.invalid_variables: typing.Set[str] = set()
        self.used_variables: typing.Set[str] = set()
        self.variable_values: typing.Optional[typing.Dict[str, typing.Any]] = None
        self.walked_fragments: typing.Dict[str, typing.Tuple[Selection, ...]] = {}

    def report(
        self,
        error_class: typing.Type[ValidationError],
        message: str,
        nodes: typing.Union[Node, typing.Sequence[Node]],
    ) -> None:
        node_list = [nodes] if isinstance(nodes, Node) else list(nodes)
        # Fragments are walked again for every operation, report each problem once.
        key = (
            error_class,
            message,
            tuple(node.loc.start if node.loc else id(node) for node in node_list),
        )
        if key in self._reported:
            return
        self._reported.add(key)
        self.errors.append(error_class(message, node_list))

    def run(
        self,
        variables: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        operation_name: typing.Optional[str] = None,
    ) -> typing.Optional[ValidatedQuery]:
        self._collect_definitions()
        selected = self._select_operation(operation_name)

        query = None
        for operation in self.operations:
            is_selected = operation is selected
            bound = self._validate_operation(
                operation, (variables or {}) if is_selected else None
            )
            if is_selected:
                query = bound

        self._check_fragment_cycles()

        for name, fragment in self.fragments.items():
            if name in self.used_fragments:
                continue
            self.report(
                ValidationError, f"Fragment '{name}' is never used.", fragment
            )

        if self.errors:
            return None
        return query

    def _collect_definitions(self) -> None:
        operation_names: typing.Set[str] = set()
        for definition in self.document.definitions:
            if isinstance(definition, OperationDefinitionNode):
                if definition.name is not None:
                    name = definition.name.value
                    if name in operation_names:
                        self.report(
                            DuplicateDefinition,
                            f"There can be only one operation named '{name}'.",
                            definition.name,
                        )
                    operation_names.add(name)
                self.operations.append(definition)
            elif isinstance(definition, FragmentDefinitionNode):
                name = definition.name.value
                if name in self.fragments:
                    self.report(
                        DuplicateDefinition,
                        f"There can be only one fragment named '{name}'.",
                        definition.name,
                    )
                    continue
                self.fragments[name] = definition
            else:
                self.report(
                    ValidationError,
                    f"The {definition.kind} definition is not executable.",
                    definition,
                )

        if len(self.operations) > 1:
            for operation in self.operations:
                if operation.name is None:
                    self.report(
                        ValidationError,
                        "This anonymous operation must be the only defined operation.",
                        operation,
                    )

    def _select_operation(
        self, operation_name: typing.Optional[str]
    ) -> typing.Optional[OperationDefinitionNode]:
        if not self.operations:
            self.report(UnknownOperation, "Must provide an operation.", self.document)
            return None

        if operation_name is not None:
            for operation in self.operations:
                if operation.name is not None and operation.name.value == operation_name:
                    return operation
            self.report(
                UnknownOperation,
                f"Unknown operation named '{operation_name}'.",
                self.document,
            )
            return None

        if len(self.operations) > 1:
            self.report(
                UnknownOperation,
                "Must provide operation name if query contains multiple operations.",
                self.document,
            )
            return None

        return self.operations[0]

    def _validate_operation(
        self,
        operation: OperationDefinitionNode,
        variables: typing.Optional[typing.Mapping[str, typing.Any]],
    ) -> typing.Optional[ValidatedQuery]:
        operation_type = operation.operation.value
        root = self.schema.root_type(operation_type)
        if root is None:
            self.report(
                UnknownOperation,
                f"Schema is not configured to execute {operation_type} operation.",
                operation,
            )
            return None

        self._reset_variables(variables)
        self.walked_fragments = {}
        self._setup_variables(operation, variables)
        selections = self._walk_selection_set(root, operation.selection_set, ())

        name = operation.name.value if operation.name else None
        for variable in self.variable_types:
            if variable not in self.used_variables:
                label = f" in operation '{name}'" if name else ""
                self.report(
                    ValidationError,
                    f"Variable '${variable}' is never used{label}.",
                    operation,
                )

        if self.variable_values is None:
            return None

        return ValidatedQuery(
            schema=self.schema,
            operation=operation_type,
            name=name,
            root_type=root.name,
            selections=selections,
            variables=types.MappingProxyType(dict(self.variable_values)),
            document=self.document,
        )

    def _reset_variables(
        self, variables: typing.Optional[typing.Mapping[str, typing.Any]]
    ) -> None:
        self.variable_types = {}
        self.variable_defaults = set()
        self.invalid_variables = set()
        self.used_variables = set()
        self.variable_values = {} if variables is not None else None

    def _setup_variables(
        self,
        operation: OperationDefinitionNode,
        provided: typing.Optional[typing.Mapping[str, typing.Any]],
    ) -> None:
        for definition in operation.variable_definitions or ():
            name = definition.variable.name.value
            if name in self.variable_types or name in self.invalid_variables:
                self.report(
                    DuplicateDefinition,
                    f"There can be only one variable named '${name}'.",
                    definition,
                )
                continue

            type_ref = TypeReference.from_ast(definition.type)
            type_def = self.schema.get_type(type_ref.named_type)
            if type_def is None:
                self.invalid_variables.add(name)
                self.report(
                    UnknownTypeName,
                    f"Unknown type '{type_ref.named_type}'.",
                    definition.type,
                )
                continue
            if not type_def.is_input:
                self.invalid_variables.add(name)
                self.report(
                    ArgumentTypeMismatch,
                    f"Variable '${name}' cannot be non-input type '{type_ref}'.",
                    definition.type,
                )
                continue

            self.variable_types[name] = type_ref
            default = Undefined
            if definition.default_value is not None:
                try:
                    default = coerce_literal(
                        definition.default_value,
                        type_ref,
                        self.schema.types,
                        allow_int_to_float=self.allow_int_to_float,
                    )
                except CoercionError as err:
                    self.report(
                        ArgumentTypeMismatch,
                        f"Variable '${name}' has an invalid default value: {err}",
                        definition.default_value,
                    )
                    continue
                self.variable_defaults.add(name)

            if provided is None or self.variable_values is None:
                continue

            if name in provided:
                try:
                    self.variable_values[name] = coerce_value(
                        provided[name],
                        type_ref,
                        self.schema.types,
                        allow_int_to_float=self.allow_int_to_float,
                        path=(name,),
                    )
                except CoercionError as err:
                    self.report(
                        ArgumentTypeMismatch,
                        f"Variable '${name}' got invalid value {provided[name]!r}; {err}",
                        definition,
                    )
            elif default is not Undefined:
                self.variable_values[name] = default
            elif type_ref.non_null:
                self.report(
                    ArgumentTypeMismatch,
                    f"Variable '${name}' of required type '{type_ref}' was not provided.",
                    definition,
                )

    def _lookup_variable(
        self,
        node: VariableNode,
        location_type: TypeReference,
        location_has_default: bool,
    ) -> typing.Any:
        name = node.name.value
        self.used_variables.add(name)

        if name in self.invalid_variables:
            return Undefined

        variable_type = self.variable_types.get(name)
        if variable_type is None:
            self.report(UnknownVariable, f"Variable '${name}' is not defined.", node)
            return Undefined

        if not self._variable_fits(
            variable_type,
            location_type,
            location_has_default or name in self.variable_defaults,
        ):
            self.report(
                ArgumentTypeMismatch,
                f"Variable '${name}' of type '{variable_type}' used in position "
                f"expecting type '{location_type}'.",
                node,
            )
            return Undefined

        if self.variable_values is None:
            return UNBOUND
        return self.variable_values.get(name, Undefined)

    def _variable_fits(
        self,
        variable_type: TypeReference,
        location_type: TypeReference,
        has_default: bool,
    ) -> bool:
        if location_type.non_null and not variable_type.non_null:
            if not has_default:
                return False
            location_type = location_type.nullable
        return self.schema.is_subtype(variable_type, location_type)

    def _coerce_arguments(
        self,
        owner: str,
        definitions: typing.Mapping[str, ArgumentDefinition],
        nodes: typing.Optional[typing.Sequence[ArgumentNode]],
        parent_node: Node,
    ) -> typing.Dict[str, typing.Any]:
        provided: typing.Dict[str, ArgumentNode] = {}
        for node in nodes or ():
            name = node.name.value
            if name in provided:
                self.report(
                    DuplicateDefinition,
                    f"There can be only one argument named '{name}'.",
                    node,
                )
                continue
            provided[name] = node
            if name not in definitions:
                self.report(
                    UnknownArgument, f"Unknown argument '{name}' on {owner}.", node
                )

        values: typing.Dict[str, typing.Any] = {}
        for name, definition in definitions.items():
            node = provided.get(name)
            value = Undefined
            if node is not None:
                try:
                    value = coerce_literal(
                        node.value,
                        definition.type,
                        self.schema.types,
                        variables=self._lookup_variable,
                        allow_int_to_float=self.allow_int_to_float,
                        has_default=definition.has_default,
                    )
                except CoercionError as err:
                    self.report(
                        ArgumentTypeMismatch,
                        f"Argument '{name}' on {owner} has an invalid value: {err}",
                        node,
                    )
                    continue

            if value is Undefined:
                if definition.has_default:
                    value = definition.default_value
                elif definition.type.non_null:
                    if node is None:
                        self.report(
                            MissingArgument,
                            f"Argument '{name}' of type '{definition.type}' is "
                            f"required on {owner}, but it was not provided.",
                            parent_node,
                        )
                    continue
                else:
                    continue
            values[name] = value
        return values

    def _is_included(self, node: typing.Any) -> bool:
        included = True
        for directive in node.directives or ():
            name = directive.name.value
            if name not in ("skip", "include"):
                self.report(UnknownDirective, f"Unknown directive '@{name}'.", directive)
                continue
            arguments = self._coerce_arguments(
                f"directive '@{name}'",
                CONDITION_ARGUMENTS,
                directive.arguments,
                directive,
            )
            condition = arguments.get("if")
            if not isinstance(condition, bool):
                continue
            if name == "skip" and condition:
                included = False
            if name == "include" and not condition:
                included = False
        return included

    def _walk_selection_set(
        self,
        parent: TypeDefinition,
        selection_set: SelectionSetNode,
        visiting: typing.Tuple[str, ...],
    ) -> typing.Tuple[Selection, ...]:
        selections: typing.List[Selection] = []
        for node in selection_set.selections:
            included = self._is_included(node)
            bound: typing.Optional[Selection]
            if isinstance(node, FieldNode):
                bound = self._walk_field(parent, node, visiting)
            elif isinstance(node, InlineFragmentNode):
                bound = self._walk_inline_fragment(parent, node, visiting)
            else:
                bound = self._walk_fragment_spread(
                    parent, typing.cast(FragmentSpreadNode, node), visiting
                )
            if bound is not None and included:
                selections.append(bound)

        result = tuple(selections)
        self._check_conflicts(result)
        return result

    def _walk_field(
        self,
        parent: TypeDefinition,
        node: FieldNode,
        visiting: typing.Tuple[str, ...],
    ) -> typing.Optional[BoundField]:
        name = node.name.value
        response_key = node.alias.value if node.alias else name

        if name == TYPENAME_FIELD.name:
            for argument in node.arguments or ():
                self.report(
                    UnknownArgument,
                    f"Unknown argument '{argument.name.value}' on field '{name}'.",
                    argument,
                )
            if node.selection_set:
                self.report(
                    UnexpectedSelectionSet,
                    f"Field '{name}' must not have a selection since type "
                    f"'{TYPENAME_FIELD.type}' has no subfields.",
                    node,
                )
            return BoundField(
                response_key=response_key,
                name=name,
                parent_type=parent.name,
                definition=TYPENAME_FIELD,
                arguments=EMPTY,
                selections=(),
                node=node,
            )

        field_def = None
        if parent.kind in (TypeKind.OBJECT, TypeKind.INTERFACE):
            field_def = parent.fields.get(name)
        if field_def is None:
            self.report(
                UnknownField,
                f"Cannot query field '{name}' on type '{parent.name}'.",
                node,
            )
            return None

        arguments = self._coerce_arguments(
            f"field '{parent.name}.{name}'", field_def.arguments, node.arguments, node
        )

        field_type = self.schema.types[field_def.type.named_type]
        selections: typing.Tuple[Selection, ...] = ()
        if field_type.is_leaf:
            if node.selection_set:
                self.report(
                    UnexpectedSelectionSet,
                    f"Field '{name}' must not have a selection since type "
                    f"'{field_def.type}' has no subfields.",
                    node.selection_set,
                )
        elif not node.selection_set:
            self.report(
                MissingSelectionSet,
                f"Field '{name}' of type '{field_def.type}' must have a selection "
                f"of subfields. Did you mean '{name} {{ ... }}'?",
                node,
            )
        else:
            selections = self._walk_selection_set(
                field_type, node.selection_set, visiting
            )

        if field_def.is_deprecated:
            LOG.debug(f"Deprecated field '{parent.name}.{name}' was queried")

        return BoundField(
            response_key=response_key,
            name=name,
            parent_type=parent.name,
            definition=field_def,
            arguments=types.MappingProxyType(arguments),
            selections=selections,
            node=node,
        )

    def _condition_type(
        self,
        parent: TypeDefinition,
        type_condition: NamedTypeNode,
        node: Node,
        label: str,
    ) -> typing.Optional[TypeDefinition]:
        name = type_condition.name.value
        type_def = self.schema.get_type(name)
        if type_def is None:
            self.report(UnknownTypeName, f"Unknown type '{name}'.", type_condition)
            return None
        if not type_def.is_composite:
            self.report(
                InvalidFragmentSpread,
                f"{label} cannot condition on non composite type '{name}'.",
                type_condition,
            )
            return None
        if not self.schema.types_overlap(name, parent.name):
            self.report(
                InvalidFragmentSpread,
                f"{label} cannot be spread here as objects of type "
                f"'{parent.name}' can never be of type '{name}'.",
                node,
            )
            return None
        return type_def

    def _walk_inline_fragment(
        self,
        parent: TypeDefinition,
        node: InlineFragmentNode,
        visiting: typing.Tuple[str, ...],
    ) -> typing.Optional[BoundFragment]:
        condition_type = parent
        type_condition = None
        if node.type_condition is not None:
            found = self._condition_type(parent, node.type_condition, node, "Fragment")
            if found is None:
                return None
            condition_type = found
            type_condition = found.name

        selections = self._walk_selection_set(
            condition_type, node.selection_set, visiting
        )
        return BoundFragment(type_condition=type_condition, selections=selections)

    def _walk_fragment_spread(
        self,
        parent: TypeDefinition,
        node: FragmentSpreadNode,
        visiting: typing.Tuple[str, ...],
    ) -> typing.Optional[BoundFragment]:
        name = node.name.value
        self.used_fragments.add(name)
        fragment = self.fragments.get(name)
        if fragment is None:
            self.report(UnknownFragment, f"Unknown fragment '{name}'.", node)
            return None

        # Cycles are reported by _check_fragment_cycles.
        if name in visiting:
            return None

        condition_type = self._condition_type(
            parent, fragment.type_condition, node, f"Fragment '{name}'"
        )
        if condition_type is None:
            return None

        selections = self.walked_fragments.get(name)
        if selections is None:
            selections = self._walk_selection_set(
                condition_type, fragment.selection_set, visiting + (name,)
            )
            self.walked_fragments[name] = selections
        return BoundFragment(
            type_condition=condition_type.name, selections=selections, name=name
        )

    def _check_conflicts(self, selections: typing.Tuple[Selection, ...]) -> None:
        fields = _collect_response_fields(selections)
        for field_list in fields.values():
            for index, first in enumerate(field_list):
                for second in field_list[index + 1 :]:
                    self._check_pair(first, second, False)

    def _check_pair(
        self, first: BoundField, second: BoundField, exclusive: bool
    ) -> None:
        """Report when two fields with the same response key cannot be merged.

        Fields on two different object types never apply to the same value so
        they only need to return the same shape of data.
        """
        if first is second:
            return

        exclusive = exclusive or (
            first.parent_type != second.parent_type
            and self.schema.types[first.parent_type].kind is TypeKind.OBJECT
            and self.schema.types[second.parent_type].kind is TypeKind.OBJECT
        )
        key = first.response_key
        nodes = [first.node, second.node]
        if not exclusive and first.name != second.name:
            self.report(
                FieldConflict,
                f"Fields '{key}' conflict because '{first.name}' and "
                f"'{second.name}' are different fields. Use different aliases on "
                "the fields to fetch both if this was intentional.",
                nodes,
            )
            return
        if not exclusive and dict(first.arguments) != dict(second.arguments):
            self.report(
                FieldConflict,
                f"Fields '{key}' conflict because they have differing arguments. "
                "Use different aliases on the fields to fetch both if this was "
                "intentional.",
                nodes,
            )
            return
        if self._types_conflict(first.definition.type, second.definition.type):
            self.report(
                FieldConflict,
                f"Fields '{key}' conflict because they return conflicting types "
                f"'{first.definition.type}' and '{second.definition.type}'. Use "
                "different aliases on the fields to fetch both if this was "
                "intentional.",
                nodes,
            )
            return

        if first.selections and second.selections:
            first_fields = _collect_response_fields(first.selections)
            second_fields = _collect_response_fields(second.selections)
            for sub_key, sub_fields in first_fields.items():
                for sub_first in sub_fields:
                    for sub_second in second_fields.get(sub_key, ()):
                        self._check_pair(sub_first, sub_second, exclusive)

    def _types_conflict(self, first: TypeReference, second: TypeReference) -> bool:
        if first.non_null != second.non_null or first.is_list != second.is_list:
            return True
        if first.of_type is not None and second.of_type is not None:
            return self._types_conflict(first.of_type, second.of_type)
        if first.name == second.name:
            return False
        return (
            self.schema.types[typing.cast(str, first.name)].is_leaf
            or self.schema.types[typing.cast(str, second.name)].is_leaf
        )

    def _check_fragment_cycles(self) -> None:
        """Report spreads that lead back to the fragment they started from.

        Every fragment definition is checked, used or not.
        """
        checked: typing.Set[str] = set()

        def visit(name: str, path: typing.Tuple[str, ...]) -> None:
            checked.add(name)
            for spread in _fragment_spreads(self.fragments[name].selection_set):
                target = spread.name.value
                if target not in self.fragments:
                    continue
                if target in path:
                    cycle = path[path.index(target) :] + (target,)
                    members = frozenset(cycle)
                    if members in self._reported_cycles:
                        continue
                    self._reported_cycles.add(members)
                    self.report(
                        FragmentCycle,
                        f"Cannot spread fragment '{target}' within itself via "
                        f"{' -> '.join(cycle)}.",
                        spread,
                    )
                elif target not in checked:
                    visit(target, path + (target,))

        for name in self.fragments:
            if name not in checked:
                visit(name, (name,))


def validate(
    schema: Schema,
    document: DocumentNode,
    variables: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    operation_name: typing.Optional[str] = None,
    allow_int_to_float: bool = True,
) -> ValidationResult:
    """Validate `document` and bind the selected operation.

    :param schema: Schema to validate against.
    :param document: Parsed query document.
    :param variables: Raw variable values for the selected operation.
    :param operation_name: Operation to select when the document has more than one.
    :param allow_int_to_float: Accept integers where a `Float` is expected.
    """
    validator = DocumentValidator(
        schema, document, allow_int_to_float=allow_int_to_float
    )
    query = validator.run(variables, operation_name)
    if validator.errors:
        LOG.debug(f"Document failed validation with {len(validator.errors)} errors")
        return ValidationResult(None, validator.errors)
    return ValidationResult(query, [])
