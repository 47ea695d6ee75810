"""
Config
======

Simple configuration management using dotenv. This provides a
`BaseConfig` class that you can expose env vars and set defaults.

.. note::
    Currently only supports the following types:

    * String
    * Integer
    * Float
    * Boolean

The engine settings live on :class:`Settings`, override them with
environment variables or a `.env` file::

    RESOLVENT_TIMEOUT=2.5
    RESOLVENT_ALLOW_INT_TO_FLOAT=false

"""

import os
import typing

from dotenv import dotenv_values

TRUE_VALUES = ["1", "on", "y", "yes", "true"]


def alias(env: str) -> str:
    """Set an alias for a field to override the default name.

    Example::

        class Config(BaseConfig):
            some_identifier: Annotated[str, alias("REAL_ENV_SETTING")]
    """
    return env


class BaseConfig:
    """
    Simple environment management with dotenv.

    Example::

        class Configuration(
            BaseConfig,
            prefix="APP",  # Optional prefix for env settings
            env_file=".env_secret"  # Optional setting for overriding `.env` filename
        ):
            port: int = 9000
            timeout: float = 1.5
            debug: bool = False

    Then in your `.env_secret` file you can override any defaults::

        APP_PORT=8000
        APP_TIMEOUT=0.5

    Environment variables take precedence over the file. Your application
    will see the overridden values and will have the correct types::

        assert Configuration.port == 8000
        assert Configuration.timeout == 0.5

    """

    _prefix: typing.ClassVar[str]
    _config: typing.ClassVar[dict[str, typing.Any]]

    def __init_subclass__(
        cls,
        prefix: typing.Optional[str] = None,
        env_file: str = ".env",
    ) -> None:
        cls._prefix = f"{prefix}_" if prefix is not None else ""
        cls._config = {
            **dotenv_values(env_file),
            **os.environ,
        }
        resolved_hints = typing.get_type_hints(cls, include_extras=True)
        for name, hint in resolved_hints.items():
            value = cls._resolve_value(hint, name, cls._prefix)
            if value is not None:
                setattr(cls, name, value)

    @classmethod
    def _resolve_value(cls, hint: typing.Any, name: str, prefix: str) -> typing.Any:
        _name = f"{prefix}{name}".upper()
        _origin = typing.get_origin(hint)

        if _origin is typing.ClassVar:
            return None

        if _origin is typing.Annotated:
            args = typing.get_args(hint)
            return cls._resolve_value(hint=args[0], name=args[1], prefix="")

        _value_raw = cls._config.get(_name)
        if _value_raw is None:
            return None

        if hint is str:
            return _value_raw
        if hint is bool:
            return _value_raw.lower() in TRUE_VALUES
        if hint is int:
            return int(_value_raw)
        if hint is float:
            return float(_value_raw)
        return None


class Settings(BaseConfig, prefix="RESOLVENT"):
    """Engine settings.

    * `timeout`: seconds a request may take, `0` means no deadline.
    * `allow_int_to_float`: accept integers for `Float` arguments and variables.
    * `debug`: log every resolver call with :class:`resolvent.middleware.DebugMiddleware`.
    """

    timeout: float = 0.0
    allow_int_to_float: bool = True
    debug: bool = False
