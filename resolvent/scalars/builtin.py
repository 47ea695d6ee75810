"""
Built-in Scalars
----------------

The five scalars every schema gets for free. Output values are serialized
leniently (an ``int`` is a fine ``String``) while inputs are strict, with one
exception: ``Float`` accepts integers. Whether an integer *literal* is
accepted for a ``Float`` argument is decided by the validator, see the
``allow_int_to_float`` setting.
"""

import math
import typing

from graphql import (
    BooleanValueNode,
    FloatValueNode,
    IntValueNode,
    StringValueNode,
    ValueNode,
)

from ._base import ScalarType

MAX_INT = 2_147_483_647
MIN_INT = -2_147_483_648


def _is_integer(value: typing.Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


class Int(ScalarType[int, int]):
    @staticmethod
    def serialize(value: typing.Any) -> int:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, str) and value:
            value = float(value)
        if not _is_integer(value):
            raise TypeError(f"Int cannot represent non-integer value: {value!r}")
        num = int(value)
        if not MIN_INT <= num <= MAX_INT:
            raise ValueError(f"Int cannot represent non 32-bit signed integer value: {value!r}")
        return num

    @staticmethod
    def parse_value(value: typing.Any) -> int:
        if not _is_integer(value):
            raise TypeError(f"Int cannot represent non-integer value: {value!r}")
        num = int(value)
        if not MIN_INT <= num <= MAX_INT:
            raise ValueError(f"Int cannot represent non 32-bit signed integer value: {value!r}")
        return num

    @classmethod
    def parse_literal(cls, node: ValueNode) -> int:
        if not isinstance(node, IntValueNode):
            raise TypeError("Int cannot represent a non-integer literal")
        return cls.parse_value(int(node.value))


class Float(ScalarType[float, float]):
    @staticmethod
    def serialize(value: typing.Any) -> float:
        if isinstance(value, bool):
            return float(value)
        if isinstance(value, str) and value:
            value = float(value)
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            raise TypeError(f"Float cannot represent non numeric value: {value!r}")
        return float(value)

    @staticmethod
    def parse_value(value: typing.Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Float cannot represent non numeric value: {value!r}")
        if not math.isfinite(value):
            raise ValueError(f"Float cannot represent non numeric value: {value!r}")
        return float(value)

    @classmethod
    def parse_literal(cls, node: ValueNode) -> float:
        if not isinstance(node, (FloatValueNode, IntValueNode)):
            raise TypeError("Float cannot represent a non numeric literal")
        return float(node.value)


class String(ScalarType[str, str]):
    @staticmethod
    def serialize(value: typing.Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        raise TypeError(f"String cannot represent value: {value!r}")

    @staticmethod
    def parse_value(value: typing.Any) -> str:
        if not isinstance(value, str):
            raise TypeError(f"String cannot represent a non string value: {value!r}")
        return value

    @classmethod
    def parse_literal(cls, node: ValueNode) -> str:
        if not isinstance(node, StringValueNode):
            raise TypeError("String cannot represent a non string literal")
        return node.value


class Boolean(ScalarType[bool, bool]):
    @staticmethod
    def serialize(value: typing.Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)) and math.isfinite(value):
            return bool(value)
        raise TypeError(f"Boolean cannot represent a non boolean value: {value!r}")

    @staticmethod
    def parse_value(value: typing.Any) -> bool:
        if not isinstance(value, bool):
            raise TypeError(f"Boolean cannot represent a non boolean value: {value!r}")
        return value

    @classmethod
    def parse_literal(cls, node: ValueNode) -> bool:
        if not isinstance(node, BooleanValueNode):
            raise TypeError("Boolean cannot represent a non boolean literal")
        return node.value


class ID(ScalarType[str, str]):
    @staticmethod
    def serialize(value: typing.Any) -> str:
        if isinstance(value, str):
            return value
        if _is_integer(value):
            return str(int(value))
        raise TypeError(f"ID cannot represent value: {value!r}")

    @staticmethod
    def parse_value(value: typing.Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        raise TypeError(f"ID cannot represent value: {value!r}")

    @classmethod
    def parse_literal(cls, node: ValueNode) -> str:
        if not isinstance(node, (StringValueNode, IntValueNode)):
            raise TypeError("ID cannot represent a non string or integer literal")
        return node.value


BUILTIN_SCALARS = {scalar.name: scalar for scalar in (Int, Float, String, Boolean, ID)}
