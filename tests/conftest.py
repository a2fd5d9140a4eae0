"""Shared fixtures: every test gets its own table directory under tmp_path."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from moodb import Client

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def db_dir(tmp_path: Path) -> Path:
    return tmp_path / "db"


@pytest.fixture
def client(db_dir: Path) -> Iterator[Client[Any]]:
    c: Client[Any] = Client.open("people", dir=db_dir)
    c.reset_table()
    yield c
    c.close()


class FailingFile:
    """Wraps a real file handle; write() fails like a full disk."""

    def __init__(self, f: Any) -> None:
        self._f = f

    def fileno(self) -> int:
        return self._f.fileno()

    def seek(self, offset: int) -> int:
        return self._f.seek(offset)

    def write(self, data: bytes) -> int:
        raise OSError(28, "No space left on device")

    def truncate(self, size: int) -> int:
        return self._f.truncate(size)

    def flush(self) -> None:
        self._f.flush()

    def close(self) -> None:
        self._f.close()
