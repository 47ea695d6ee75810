from ._base import ScalarInterface, ScalarType
from .builtin import BUILTIN_SCALARS

__all__ = [
    "BUILTIN_SCALARS",
    "ScalarInterface",
    "ScalarType",
]
