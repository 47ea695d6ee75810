import importlib
import typing

from graphql import DocumentNode, parse

from .scalars import ScalarInterface


def resolve_scalars(scalars: typing.Iterable[str]) -> typing.List[ScalarInterface]:
    """Import scalar implementations from dotted paths like 'my.module.Klass'."""
    _scalars: typing.List[ScalarInterface] = []
    for scalar in scalars or []:
        _mod, _, _klass = scalar.rpartition(".")
        if not _mod:
            raise AttributeError(
                f"Scalar: {scalar} invalid must be a module path for import like 'my.module.Klass'"
            )
        _parent = importlib.import_module(_mod)
        _klass_obj = getattr(_parent, _klass)
        _scalars.append(_klass_obj)

    return _scalars


def gql(schema: str) -> DocumentNode:
    """
    Helper utility to provide help mark up
    """
    return parse(schema)
