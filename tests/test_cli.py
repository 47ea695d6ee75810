import json
import pathlib
import sys

import pytest
from pytest_mock import MockerFixture

from resolvent.cli import load_config, main
from resolvent.utils import resolve_scalars
from resolvent.scalars.util import UUID

SCHEMA = """
scalar UUID

type Book {
    id: UUID
    title: String
}

type Query {
    books(limit: Int = 1): [Book]
}
"""


@pytest.fixture
def schema_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    schema = tmp_path / "schema"
    schema.mkdir()
    (schema / "schema.graphql").write_text(SCHEMA)
    return schema


def test_help(mocker: MockerFixture):
    mocker.patch.object(sys, "argv", ["cli"])
    with pytest.raises(SystemExit):
        main()


def test_check(schema_dir, capsys):
    assert main(["--schema", str(schema_dir), "check"]) == 0
    assert "Schema OK" in capsys.readouterr().out


def test_check_invalid_schema(tmp_path: pathlib.Path, capsys):
    (tmp_path / "bad.graphql").write_text("type Query { me: User }")
    assert main(["--schema", str(tmp_path), "check"]) == 1
    assert "UNKNOWN_TYPE" in capsys.readouterr().err


def test_run(schema_dir, tmp_path: pathlib.Path, capsys):
    query = tmp_path / "query.graphql"
    query.write_text("query Books { books { id title } }")
    root = tmp_path / "root.json"
    root.write_text(
        json.dumps(
            {"books": [{"id": "6f1c5d1e-4b43-4c5a-9d89-0fa3c8ebd6a1", "title": "Dune"}]}
        )
    )

    exit_code = main(
        [
            "--schema",
            str(schema_dir),
            "--scalar",
            "resolvent.scalars.util.UUID",
            "run",
            "--query",
            str(query),
            "--root",
            str(root),
        ]
    )
    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output == {
        "data": {
            "books": [{"id": "6f1c5d1e-4b43-4c5a-9d89-0fa3c8ebd6a1", "title": "Dune"}]
        }
    }


def test_run_with_errors(schema_dir, tmp_path: pathlib.Path, capsys):
    query = tmp_path / "query.graphql"
    query.write_text("{ movies { title } }")
    assert main(["--schema", str(schema_dir), "run", "-q", str(query)]) == 1
    output = json.loads(capsys.readouterr().out)
    assert output["data"] is None
    assert output["errors"][0]["extensions"] == {"code": "UNKNOWN_FIELD"}


def test_config_file(schema_dir, tmp_path: pathlib.Path, mocker: MockerFixture):
    config = tmp_path / "pyproject.toml"
    config.write_text(
        f"""
[tool.resolvent]
schema = "{schema_dir.as_posix()}"
scalars = ["resolvent.scalars.util.UUID"]
"""
    )
    assert load_config(config) == {
        "schema": schema_dir.as_posix(),
        "scalars": ["resolvent.scalars.util.UUID"],
    }
    run_check = mocker.patch("resolvent.cli.run_check", return_value=0)
    assert main(["--config", str(config), "check"]) == 0
    run_check.assert_called_once_with(
        schema_dir.as_posix(), ["resolvent.scalars.util.UUID"]
    )


def test_missing_config_file(tmp_path: pathlib.Path):
    assert load_config(tmp_path / "missing.toml") == {}


def test_resolve_scalars():
    assert resolve_scalars(["resolvent.scalars.util.UUID"]) == [UUID]
    with pytest.raises(AttributeError, match="must be a module path"):
        resolve_scalars(["UUID"])
