from .api import ResolventAPI, execute_request
from .context import ExecutionContext, ResolveInfo
from .errors import (
    ExecutionError,
    InvalidResolver,
    SchemaError,
    ValidationError,
    format_errors,
)
from .execution import execute
from .registry import FrozenRegistry, ResolverRegistry
from .schema import Schema, build_schema, concat_documents, load_schema
from .utils import gql
from .validation import ValidatedQuery, ValidationResult, validate

__all__ = [
    "ExecutionContext",
    "ExecutionError",
    "FrozenRegistry",
    "InvalidResolver",
    "ResolveInfo",
    "ResolventAPI",
    "ResolverRegistry",
    "Schema",
    "SchemaError",
    "ValidatedQuery",
    "ValidationError",
    "ValidationResult",
    "build_schema",
    "concat_documents",
    "execute",
    "execute_request",
    "format_errors",
    "gql",
    "load_schema",
    "validate",
]

__VERSION__ = "0.1.0"
