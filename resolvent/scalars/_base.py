import abc
import typing

from graphql import ValueNode, value_from_ast_untyped


Input = typing.TypeVar("Input")
Output = typing.TypeVar("Output")


class ScalarInterface(typing.Protocol):
    name: str

    @staticmethod
    def serialize(value: typing.Any) -> typing.Any: ...

    @staticmethod
    def parse_value(value: typing.Any) -> typing.Any: ...

    @classmethod
    def parse_literal(cls, node: ValueNode) -> typing.Any: ...


class ScalarType(typing.Generic[Input, Output]):
    """Scalar Type

    This class is intended to assist in writing well typed custom scalars.
    This class is a Generic type that expects two concrete types, `Input` and
    `Output`. `Input` is the raw python type and `Output` is a serializable
    type like `str`, `int` that is safe for JSON encoding.

    To use a custom type you must first add this type definition to your schema::

        scalar Datetime

    Next you need to create a subclass of `ScalarType` like::

        from datetime import datetime

        class Datetime(
            ScalarType[datetime, str],  # Input is the first type and Output is the second
            name="Datetime",  # Optional scalar name, by default the class name will be used.
        ):

            @staticmethod
            def serialize(value: datetime) -> str:
                return value.isoformat()

            @staticmethod
            def parse_value(value: str) -> datetime:
                return datetime.datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f")

    Then pass it to the schema build::

        schema = build_schema([SCHEMA], scalars=[Datetime])

    Any of these methods may raise `ValueError` or `TypeError` when the value
    cannot be represented, the engine reports that as an error on the field
    or argument being coerced.
    """

    name: typing.ClassVar[str]

    def __init_subclass__(cls, name: typing.Optional[str] = None) -> None:
        cls.name = name or cls.__name__
        return super().__init_subclass__()

    @staticmethod
    @abc.abstractmethod
    def serialize(value: Input) -> Output: ...

    @staticmethod
    @abc.abstractmethod
    def parse_value(value: Output) -> Input: ...

    @classmethod
    def parse_literal(cls, node: ValueNode) -> Input:
        """Parse a literal from the query document.

        By default the literal is converted to a plain python value and
        passed to `parse_value`.
        """
        return cls.parse_value(value_from_ast_untyped(node))
