"""
Accessors
---------

The default resolver reads a property with the same name as the field from
the parent value. How a property is read depends on what the value is, dicts
are read by key and everything else by attribute. Support for other
representations can be registered::

    from resolvent import accessors

    @accessors.get_field.register(MyRecord)
    def _(value: MyRecord, name: str, default=None):
        return value.column(name, default)

    @accessors.has_field.register(MyRecord)
    def _(value: MyRecord, name: str) -> bool:
        return value.has_column(name)
"""

import collections.abc
import functools
import typing

TYPENAME = "__typename"


@functools.singledispatch
def has_field(value: typing.Any, name: str) -> bool:
    """Does `value` expose a field called `name`."""
    return hasattr(value, name)


@has_field.register(collections.abc.Mapping)
def _has_mapping_field(value: typing.Mapping, name: str) -> bool:
    return name in value


@functools.singledispatch
def get_field(value: typing.Any, name: str, default: typing.Any = None) -> typing.Any:
    """Read the field called `name` from `value`."""
    return getattr(value, name, default)


@get_field.register(collections.abc.Mapping)
def _get_mapping_field(
    value: typing.Mapping, name: str, default: typing.Any = None
) -> typing.Any:
    return value.get(name, default)


def typename_of(value: typing.Any) -> typing.Optional[str]:
    """Name of the object type `value` represents.

    Values can say what they are with a `__typename` field, otherwise the
    class name is used. Plain dicts without a `__typename` are unknown.
    """
    if has_field(value, TYPENAME):
        return get_field(value, TYPENAME)
    if isinstance(value, collections.abc.Mapping):
        return None
    return type(value).__name__
