"""
Errors
======

There are three families of errors:

* :class:`SchemaError` is raised by :func:`resolvent.build_schema` and is
  fatal, a schema with errors is never served.
* :class:`ValidationError` is returned as a batch when a query document does
  not match the schema. No resolver runs when there are validation errors.
* :class:`ExecutionError` is attached to the result at the path of the field
  that failed. The rest of the response is still returned.

Both request level families are :class:`graphql.GraphQLError` subclasses so
they carry the locations and path and format the same way any other GraphQL
server would. Each error sets ``extensions.code`` so clients can branch on it.
"""

import logging
import typing

from graphql import GraphQLError, GraphQLFormattedError, Node, Source

DEFAULT_LOGGER = logging.getLogger(__name__)

Path = typing.Sequence[typing.Union[str, int]]


class SchemaError(Exception):
    """Raised when the schema definitions are invalid."""

    code: typing.ClassVar[str] = "SCHEMA_ERROR"


class SchemaSyntaxError(SchemaError):
    code = "SYNTAX_ERROR"


class DuplicateType(SchemaError):
    code = "DUPLICATE_TYPE"


class DuplicateField(DuplicateType):
    code = "DUPLICATE_FIELD"


class UnknownType(SchemaError):
    code = "UNKNOWN_TYPE"


class InterfaceMismatch(SchemaError):
    code = "INTERFACE_MISMATCH"


class InvalidTypeUsage(SchemaError):
    code = "INVALID_TYPE_USAGE"


class MissingRootType(SchemaError):
    code = "MISSING_ROOT_TYPE"


class InvalidResolver(Exception):
    """Raised when a resolver is registered for a type or field that does not exist."""


class RequestError(GraphQLError):
    """Base for errors reported back to the client."""

    code: typing.ClassVar[str] = "REQUEST_ERROR"

    def __init__(
        self,
        message: str,
        nodes: typing.Union[Node, typing.Sequence[Node], None] = None,
        path: typing.Optional[Path] = None,
        original_error: typing.Optional[Exception] = None,
        source: typing.Optional[Source] = None,
        positions: typing.Optional[typing.Collection[int]] = None,
    ):
        super().__init__(
            message,
            nodes=list(nodes) if isinstance(nodes, (tuple, list)) else nodes,
            source=source,
            positions=positions,
            path=list(path) if path is not None else None,
            original_error=original_error,
            extensions={"code": self.code},
        )


class ValidationError(RequestError):
    code = "VALIDATION_ERROR"


class UnknownField(ValidationError):
    code = "UNKNOWN_FIELD"


class ArgumentTypeMismatch(ValidationError):
    code = "ARGUMENT_TYPE_MISMATCH"


class UnknownArgument(ValidationError):
    code = "UNKNOWN_ARGUMENT"


class MissingArgument(ValidationError):
    code = "MISSING_ARGUMENT"


class FragmentCycle(ValidationError):
    code = "FRAGMENT_CYCLE"


class UnknownFragment(ValidationError):
    code = "UNKNOWN_FRAGMENT"


class InvalidFragmentSpread(ValidationError):
    code = "INVALID_FRAGMENT_SPREAD"


class UnknownTypeName(ValidationError):
    code = "UNKNOWN_TYPE"


class MissingSelectionSet(ValidationError):
    code = "MISSING_SELECTION_SET"


class UnexpectedSelectionSet(ValidationError):
    code = "UNEXPECTED_SELECTION_SET"


class UnknownVariable(ValidationError):
    code = "UNKNOWN_VARIABLE"


class UnknownDirective(ValidationError):
    code = "UNKNOWN_DIRECTIVE"


class FieldConflict(ValidationError):
    code = "FIELD_CONFLICT"


class DuplicateDefinition(ValidationError):
    code = "DUPLICATE_DEFINITION"


class UnknownOperation(ValidationError):
    code = "UNKNOWN_OPERATION"


class SyntaxValidationError(ValidationError):
    code = "SYNTAX_ERROR"


class ExecutionError(RequestError):
    code = "EXECUTION_ERROR"


class ResolverThrew(ExecutionError):
    code = "RESOLVER_ERROR"


class Timeout(ExecutionError):
    code = "TIMEOUT"


class NullOnNonNullField(ExecutionError):
    code = "NULL_ON_NON_NULL_FIELD"


class InvalidValue(ExecutionError):
    code = "INVALID_VALUE"


def format_errors(
    errors: typing.Optional[typing.Sequence[GraphQLError]] = None,
    logger: typing.Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
) -> typing.Optional[typing.List[GraphQLFormattedError]]:
    """Return the errors formatted for the response.

    Errors raised by resolvers are unexpected, those are logged along with
    the locals of the frame that raised them. Client errors are not logged.
    """
    if not errors:
        return None

    logger = logger or DEFAULT_LOGGER

    formatted_errors: typing.List[GraphQLFormattedError] = []

    for err in errors:
        if err.original_error is not None:
            log_error(err, logger, level)

        formatted_errors.append(err.formatted)
    return formatted_errors


def log_error(
    error: GraphQLError,
    logger: logging.Logger,
    level: int,
):
    original = error.original_error or error
    if tb := original.__traceback__:
        while tb and tb.tb_next:
            tb = tb.tb_next
        logger.log(level, f"{error} \nContext={tb.tb_frame.f_locals!r}")
    else:
        logger.log(level, f"{error}")
