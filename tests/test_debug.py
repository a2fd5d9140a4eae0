from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import pytest

from moodb import AlreadyExists, Client, Configuration, DebugClient, DebugLevel

if TYPE_CHECKING:
    from pathlib import Path

LINE = re.compile(r"^\[(?P<ts>[^\]]+)\] (?P<level>Info|Warning|Error) - (?P<msg>.*)$")


def _lines(path: Path) -> list[re.Match[str]]:
    matches = [LINE.match(line) for line in path.read_text().splitlines()]
    assert all(matches), path.read_text()
    return [m for m in matches if m]


class TestDebugClient:
    def test_disabled_writes_nothing(self, tmp_path: Path) -> None:
        sink = DebugClient(False, directory=tmp_path)
        sink.log("hello")

        assert sink.path is None
        assert not (tmp_path / "debug.log").exists()

    def test_line_format(self, tmp_path: Path) -> None:
        sink = DebugClient(True, DebugLevel.INFO, tmp_path)
        sink.info("first")
        sink.error("second")
        sink.close()

        lines = _lines(tmp_path / "debug.log")

        assert [(m["level"], m["msg"]) for m in lines] == [("Info", "first"), ("Error", "second")]

    def test_filters_below_level(self, tmp_path: Path) -> None:
        sink = DebugClient(True, DebugLevel.WARNING, tmp_path)
        sink.info("dropped")
        sink.warning("kept")
        sink.close()

        assert [m["msg"] for m in _lines(tmp_path / "debug.log")] == ["kept"]

    def test_appends_across_clients(self, tmp_path: Path) -> None:
        for msg in ("one", "two"):
            sink = DebugClient(True, DebugLevel.INFO, tmp_path)
            sink.info(msg)
            sink.close()

        assert [m["msg"] for m in _lines(tmp_path / "debug.log")] == ["one", "two"]

    def test_unopenable_log_file(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        sink = DebugClient(True, DebugLevel.INFO, tmp_path / "missing")

        sink.info("still fine")

        assert sink.enabled
        assert sink.path is None
        assert "debug log disabled" in caplog.text


class TestClientEvents:
    def test_table_events_logged(self, tmp_path: Path) -> None:
        cfg = Configuration(debug_mode=True)

        with Client.open("events", dir=tmp_path, config=cfg) as c:
            t = c.get_table()
            t.insert("a", 1)
            t.update_many([("a", 2), ("ghost", 0)])
            t.delete("a")
            with pytest.raises(AlreadyExists):
                t.insert_many([("b", 1), ("b", 2)])

        messages = [(m["level"], m["msg"]) for m in _lines(tmp_path / "debug.log")]

        assert ("Info", "Opened table: events (0 records)") in messages
        assert ("Info", "Getting table: events") in messages
        assert ("Info", "Inserted record with key: a") in messages
        assert ("Warning", "Skipped update for missing keys: ['ghost']") in messages
        assert ("Info", "Deleted record with key: a") in messages
        assert any(level == "Warning" and "key: b already exists" in msg for level, msg in messages)

    def test_debug_log_in_table_directory(self, tmp_path: Path) -> None:
        cfg = Configuration(db_dir=str(tmp_path / "cfg"), debug_mode=True)

        with Client.open("t", dir=tmp_path / "explicit", config=cfg) as c:
            c.get_table()

        assert (tmp_path / "explicit" / "debug.log").exists()

    def test_no_log_without_debug_mode(self, tmp_path: Path) -> None:
        c: Client[Any] = Client.open("quiet", dir=tmp_path)
        c.get_table().insert("a", 1)
        c.close()

        assert not (tmp_path / "debug.log").exists()
