from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from moodb.cli import cli

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def run(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    db = str(tmp_path / "db")

    def invoke(*args: str):
        return runner.invoke(cli, ["--db-dir", db, *args])

    return invoke


class TestPutGet:
    def test_put_then_get_json(self, run) -> None:
        assert run("put", "t", "a", '{"x": 1}').exit_code == 0

        result = run("get", "t", "a")

        assert result.exit_code == 0
        assert json.loads(result.output) == {"x": 1}

    def test_plain_string_value(self, run, tmp_path: Path) -> None:
        run("put", "t", "a", "hello world")

        assert (tmp_path / "db" / "t.json").read_text() == '[{"key":"a","value":"hello world"}]'

    def test_duplicate_put_fails(self, run) -> None:
        run("put", "t", "a", "1")

        result = run("put", "t", "a", "2")

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_update(self, run) -> None:
        run("put", "t", "a", "1")

        assert run("put", "t", "a", "2", "--update").exit_code == 0
        assert run("get", "t", "a").output.strip() == "2"

    def test_get_missing_key(self, run) -> None:
        run("put", "t", "a", "1")

        result = run("get", "t", "zzz")

        assert result.exit_code == 1
        assert "No record found with key: zzz" in result.output

    def test_get_missing_table(self, run) -> None:
        result = run("get", "nope", "a")

        assert result.exit_code == 1
        assert "No such table: nope" in result.output


class TestTableCommands:
    def test_tables_and_show(self, run) -> None:
        run("put", "alpha", "k1", '"v1"')
        run("put", "beta", "k2", "2")

        listed = run("tables")
        shown = run("show", "alpha")

        assert listed.output.split() == ["alpha", "beta"]
        assert shown.exit_code == 0
        assert "k1" in shown.output

    def test_delete_one_and_many(self, run) -> None:
        for k in ("a", "b", "c"):
            run("put", "t", k, "1")

        assert run("delete", "t", "a").exit_code == 0
        result = run("delete", "t", "b", "c")

        assert result.exit_code == 0
        assert "0 records left" in result.output

    def test_reset_keeps_empty_file(self, run, tmp_path: Path) -> None:
        run("put", "t", "a", "1")

        assert run("reset", "t").exit_code == 0
        assert (tmp_path / "db" / "t.json").stat().st_size == 0
        assert "no records" in run("show", "t").output

    def test_drop_removes_file(self, run, tmp_path: Path) -> None:
        run("put", "t", "a", "1")

        assert run("drop", "t", "--yes").exit_code == 0
        assert not (tmp_path / "db" / "t.json").exists()


def test_init_writes_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli, ["init", "--dir", str(tmp_path)])

    assert result.exit_code == 0
    assert (tmp_path / "moodb.toml").exists()
    assert (tmp_path / "db" / "moo").is_dir()
