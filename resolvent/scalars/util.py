import json
import uuid

from graphql import StringValueNode, ValueNode, value_from_ast_untyped

from ._base import ScalarType


class JSON(ScalarType[dict, dict]):
    """JSON objects are sent as is, string input is decoded with :func:`json.loads`"""

    @staticmethod
    def serialize(value: dict) -> dict:
        return value

    @staticmethod
    def parse_value(value: str) -> dict:
        if isinstance(value, dict):
            return value
        return json.loads(value)

    @classmethod
    def parse_literal(cls, node: ValueNode) -> dict:
        # Object literals are accepted as is, strings are decoded.
        return cls.parse_value(value_from_ast_untyped(node))


class UUID(ScalarType[uuid.UUID, str]):
    """UUID seralizes to :func:`uuid.UUID` objects"""

    @staticmethod
    def serialize(value: uuid.UUID) -> str:
        return str(value)

    @staticmethod
    def parse_value(value: str) -> uuid.UUID:
        if not isinstance(value, str):
            raise TypeError(f"UUID cannot represent value: {value!r}")
        return uuid.UUID(value)

    @classmethod
    def parse_literal(cls, node: ValueNode) -> uuid.UUID:
        if not isinstance(node, StringValueNode):
            raise TypeError("UUID must be a string literal")
        return cls.parse_value(node.value)
