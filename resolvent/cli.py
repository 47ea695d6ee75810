"""
Command Line
============

::

    resolvent check --schema schema/
    resolvent run --schema schema/ --query query.graphql --root data.json

`check` builds the schema and reports any errors. `run` executes a query
against a JSON root value using the default resolvers and prints the
response. Options can also be set in `pyproject.toml`::

    [tool.resolvent]
    schema = "schema"
    scalars = ["resolvent.scalars.util.UUID"]
"""

import argparse
import asyncio
import json
import logging
import pathlib
import sys
import typing

import tomli

import resolvent
from resolvent.errors import SchemaError
from resolvent.utils import resolve_scalars

LOG = logging.getLogger(__name__)

# create the top-level parser for global options
parser = argparse.ArgumentParser(
    prog="resolvent",
    description="Resolvent command for checking schemas and running queries.",
)
parser.add_argument(
    "--config",
    help="Specify a different location or name of the configuration file. This should be a well formatted TOML file.",
    default="pyproject.toml",
)
parser.add_argument(
    "--debug",
    "-d",
    action="store_true",
    help="Display debug information.",
)
parser.add_argument(
    "--schema",
    help="Specify a path or location for the schema files to use.",
    default=None,
)
parser.add_argument(
    "--scalar",
    help="Scalar implementation to use, this can be specified multiple times.",
    type=str,
    action="append",
    dest="scalars",
)

# Sub Commands parser
subparsers = parser.add_subparsers(dest="command")  # type: ignore

check_parser = subparsers.add_parser(
    "check",
    help="Build the schema and report any errors.",
)

run_parser = subparsers.add_parser(
    "run",
    help="Execute a query against a JSON root value.",
)
run_parser.add_argument(
    "--query",
    "-q",
    help="File containing the query document.",
    required=True,
)
run_parser.add_argument(
    "--root",
    help="JSON file to use as the root value.",
    default=None,
)
run_parser.add_argument(
    "--variables",
    help="JSON encoded variables.",
    default=None,
)
run_parser.add_argument(
    "--operation",
    help="Name of the operation to run.",
    default=None,
)


def load_config(config) -> dict:
    source = pathlib.Path(config)
    if not source.is_file():
        return {}

    with open(source, "rb") as conf_file:
        options = tomli.load(conf_file)
        return options.get("tool", {}).get("resolvent", {})


def load(schema: str, scalars: typing.Optional[typing.List[str]]) -> resolvent.Schema:
    documents = resolvent.load_schema(pathlib.Path(schema))
    return resolvent.build_schema(documents, scalars=resolve_scalars(scalars or []))


def run_check(schema: str, scalars: typing.Optional[typing.List[str]]) -> int:
    try:
        built = load(schema, scalars)
    except SchemaError as err:
        print(f"{err.code}: {err}", file=sys.stderr)
        return 1

    print(f"Schema OK: {len(built.types)} types")
    return 0


def run_query(
    schema: str,
    scalars: typing.Optional[typing.List[str]],
    query: str,
    root: typing.Optional[str],
    variables: typing.Optional[str],
    operation: typing.Optional[str],
) -> int:
    try:
        built = load(schema, scalars)
    except SchemaError as err:
        print(f"{err.code}: {err}", file=sys.stderr)
        return 1

    root_value = json.loads(pathlib.Path(root).read_text()) if root else None
    api = resolvent.ResolventAPI(schema=built, root_value=root_value)
    result = asyncio.run(
        api.call(
            pathlib.Path(query).read_text(),
            variables=json.loads(variables) if variables else None,
            operation_name=operation,
        )
    )
    response: typing.Dict[str, typing.Any] = {"data": result.data}
    if errors := resolvent.format_errors(result.errors, logger=LOG):
        response["errors"] = errors
    print(json.dumps(response, indent=2))
    return 1 if result.errors else 0


def main(argv: typing.Optional[typing.List[str]] = None) -> int:
    options = parser.parse_args(argv if argv is not None else sys.argv[1:] or ["--help"])
    if not options.command:
        parser.print_help()
        return 2

    level = logging.DEBUG if options.debug else logging.INFO
    logging.basicConfig(level=level)
    configuration = load_config(options.config)

    schema = options.schema or configuration.get("schema", ".")
    scalars = options.scalars or configuration.get("scalars")

    if options.command == "check":
        return run_check(schema, scalars)

    return run_query(
        schema=schema,
        scalars=scalars,
        query=options.query,
        root=options.root,
        variables=options.variables,
        operation=options.operation,
    )
