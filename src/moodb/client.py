"""Client: resolves the storage directory and owns one Table.

    with Client.open("accounts") as client:
        accounts = client.get_table()
        accounts.insert("user1", {"balance": 10})
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Generic

from moodb.codec import JsonCodec
from moodb.config import Configuration
from moodb.debug import DebugClient
from moodb.errors import IOFatal
from moodb.models import V
from moodb.table import Table, table_path

if TYPE_CHECKING:
    from types import TracebackType

    from moodb.codec import Codec

logger = logging.getLogger("moodb.client")


class Client(Generic[V]):
    """Entry point: one directory, one configuration, one debug sink, one table."""

    def __init__(
        self,
        path: Path,
        table: Table[V],
        config: Configuration,
        debugger: DebugClient,
    ) -> None:
        self.path = path
        self.table = table
        self.config = config
        self.debugger = debugger

    @classmethod
    def open(
        cls,
        name: str,
        dir: Path | str | None = None,  # noqa: A002
        config: Configuration | None = None,
        *,
        codec: Codec | None = None,
    ) -> Client[V]:
        """Open (or create) table `name` under dir, defaulting to config.db_dir.

        Raises IOFatal if the directory cannot be created, and propagates any
        Table construction error (IOFatal, CorruptTable) unchanged.
        """
        config = config or Configuration()
        codec = codec or JsonCodec()
        path = Path(dir) if dir is not None else Path(config.db_dir)
        file_path = table_path(path, name, codec.extension)

        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = (
                f"Failed to create database directory {path}. "
                "Might be missing permissions to write the directory?"
            )
            raise IOFatal(msg) from exc

        debugger = DebugClient(config.debug_mode, config.debug_level, path)
        try:
            table: Table[V] = Table(name, file_path, codec=codec, debugger=debugger)
        except Exception:
            debugger.close()
            raise

        logger.debug("client opened: %s", file_path)
        return cls(path, table, config, debugger)

    def __enter__(self) -> Client[V]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def get_table(self) -> Table[V]:
        """Return the client's table. Every call returns the same shared object."""
        self.debugger.info(f"Getting table: {self.table.name}")
        return self.table

    def reset_table(self) -> None:
        """Clear all records and truncate the table file to zero bytes."""
        self.table.reset()

    def delete_table(self) -> None:
        """Clear all records and remove the table file."""
        self.table.delete_self()

    def close(self) -> None:
        self.table.close()
        self.debugger.close()
