"""Table: an ordered, persistent sequence of key -> value records.

The whole sequence lives in memory; the file is the authoritative copy and is
rewritten in full after every mutation:

    encode -> lock -> seek(0) -> write -> truncate(len) -> flush -> unlock

One re-entrant lock guards both the record list and the file handle, so
readers never observe a half-applied mutation and concurrent writers are
applied in some serial order. The file also carries an flock(LOCK_EX) for the
duration of the rewrite.

If a rewrite fails the in-memory sequence is rolled back to its state before
the mutation and the table is marked poisoned: further mutations raise
IOFatal until the table is reset or reopened.
"""

from __future__ import annotations

import contextlib
import copy
import fcntl
import logging
import os
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Generic

from moodb.codec import CodecError, JsonCodec
from moodb.debug import DebugClient
from moodb.errors import AlreadyExists, CorruptTable, EmptyInput, IOFatal, NotFound
from moodb.models import Record, V, check_key, check_keys

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from typing import BinaryIO

    from moodb.codec import Codec

logger = logging.getLogger("moodb.table")


def table_path(directory: Path | str, name: str, extension: str = JsonCodec.extension) -> Path:
    """Return {directory}/{name}.{extension}, rejecting names that escape directory."""
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        msg = f"Invalid table name: {name!r}"
        raise ValueError(msg)
    return Path(directory) / f"{name}.{extension}"


class Table(Generic[V]):
    """A named table backed by a single file.

    Construct through Client.open(); the Client owns the table and hands out
    this same object from get_table().
    """

    def __init__(
        self,
        name: str,
        path: Path | str,
        *,
        codec: Codec | None = None,
        debugger: DebugClient | None = None,
    ) -> None:
        self.name = name
        self.path = Path(path)
        self._codec: Codec = codec or JsonCodec()
        self._debug = debugger or DebugClient(enabled=False)
        self._lock = threading.RLock()
        self._poisoned = False
        self._file: BinaryIO | None = None

        try:
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as exc:
            msg = f"Failed to open table file {self.path}: {exc}"
            raise IOFatal(msg) from exc
        f = os.fdopen(fd, "r+b")
        try:
            data = f.read()
        except OSError as exc:
            f.close()
            msg = f"Failed to read table file {self.path}: {exc}"
            raise IOFatal(msg) from exc

        try:
            records = self._codec.decode(data)
        except CodecError as exc:
            f.close()
            msg = f"Failed to parse table file {self.path}: {exc}"
            raise CorruptTable(msg) from exc

        self._file = f
        self._records: list[Record[V]] = records
        logger.debug("opened table %s (%d records, %d bytes)", self.path, len(records), len(data))
        self._debug.info(f"Opened table: {name} ({len(records)} records)")

    def __repr__(self) -> str:
        return f"Table(name={self.name!r}, path={str(self.path)!r}, records={len(self)})"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._file is None

    @property
    def poisoned(self) -> bool:
        """True after a failed rewrite; the file may not match memory."""
        return self._poisoned

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return self._index_of(key) is not None

    def keys(self) -> list[str]:
        """Keys in storage order."""
        with self._lock:
            return [r.key for r in self._records]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, key: str) -> V:
        """Return a copy of the value stored under key."""
        check_key(key)
        with self._lock:
            i = self._index_of(key)
            if i is None:
                msg = f"No record found with key: {key}"
                raise NotFound(msg)
            self._debug.info(f"Found record with key: {key}")
            return copy.deepcopy(self._records[i].value)

    def get_many(self, keys: Iterable[str]) -> list[Record[V]]:
        """Return copies of the records whose key is in keys, in storage order."""
        wanted = check_keys(keys)
        with self._lock:
            found = [copy.deepcopy(r) for r in self._records if r.key in wanted]
        if not found:
            msg = f"No records found with keys: {sorted(wanted)}"
            raise NotFound(msg)
        self._debug.info(f"Found {len(found)} records for {len(wanted)} keys")
        return found

    def get_all(self) -> list[Record[V]]:
        """Return a copy of the whole sequence."""
        with self._lock:
            if not self._records:
                msg = "No records found in the table."
                raise NotFound(msg)
            found = copy.deepcopy(self._records)
        self._debug.info(f"Found {len(found)} records")
        return found

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def insert(self, key: str, value: V) -> None:
        check_key(key)
        with self._mutation() as records:
            if self._index_of(key) is not None:
                msg = f"Record with key: {key} already exists. Use the update method to change its value."
                self._debug.warning(msg)
                raise AlreadyExists(msg)
            records.append(Record(key, copy.deepcopy(value)))
        self._debug.info(f"Inserted record with key: {key}")

    def insert_many(self, items: Iterable[Record[V] | tuple[str, V] | Mapping[str, Any]]) -> None:
        """Append all records in order with a single rewrite. Nothing is inserted on collision."""
        new = [Record.coerce(item) for item in items]
        if not new:
            msg = "No records to insert."
            self._debug.warning(msg)
            raise EmptyInput(msg)

        with self._mutation() as records:
            seen: set[str] = set()
            for r in new:
                if r.key in seen or self._index_of(r.key) is not None:
                    msg = f"Record with key: {r.key} already exists. Use the update method to change its value."
                    self._debug.warning(msg)
                    raise AlreadyExists(msg)
                seen.add(r.key)
            records.extend(Record(r.key, copy.deepcopy(r.value)) for r in new)
        self._debug.info(f"Inserted {len(new)} records")

    def update(self, key: str, value: V) -> None:
        check_key(key)
        with self._mutation() as records:
            i = self._index_of(key)
            if i is None:
                msg = f"No record found with key: {key}"
                raise NotFound(msg)
            records[i] = Record(key, copy.deepcopy(value))
        self._debug.info(f"Updated record with key: {key}")

    def update_many(self, items: Iterable[Record[V] | tuple[str, V] | Mapping[str, Any]]) -> None:
        """Replace values in place for keys present in the table.

        Keys absent from the table are skipped; they are reported to the
        debug sink at Warning level. The last entry wins when a key repeats.
        """
        changes = {r.key: r.value for r in (Record.coerce(item) for item in items)}
        if not changes:
            msg = "No records to update."
            self._debug.warning(msg)
            raise EmptyInput(msg)

        with self._mutation() as records:
            updated: set[str] = set()
            for i, r in enumerate(records):
                if r.key in changes:
                    records[i] = Record(r.key, copy.deepcopy(changes[r.key]))
                    updated.add(r.key)
        skipped = [k for k in changes if k not in updated]
        self._debug.info(f"Updated {len(updated)} records")
        if skipped:
            self._debug.warning(f"Skipped update for missing keys: {skipped}")

    def delete(self, key: str) -> None:
        check_key(key)
        with self._mutation() as records:
            i = self._index_of(key)
            if i is None:
                msg = f"No record found with key: {key}"
                raise NotFound(msg)
            del records[i]
        self._debug.info(f"Deleted record with key: {key}")

    def delete_many(self, keys: Iterable[str]) -> None:
        """Remove every record whose key is in keys. Absent keys are ignored."""
        doomed = check_keys(keys)
        with self._mutation() as records:
            before = len(records)
            records[:] = [r for r in records if r.key not in doomed]
            removed = before - len(records)
        self._debug.info(f"Deleted {removed} records with keys: {sorted(doomed)}")

    def delete_all(self) -> None:
        with self._mutation() as records:
            records.clear()
        self._debug.info("Deleted all records")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Clear all records and rewrite the file to zero bytes.

        Unlike other mutations this is allowed on a poisoned table, and a
        successful reset clears the poisoned flag.
        """
        with self._lock:
            self._debug.info(f"Resetting table: {self.name}")
            self._check_open()
            snapshot = list(self._records)
            self._records.clear()
            try:
                self._save()
            except BaseException:
                self._records[:] = snapshot
                raise
            self._poisoned = False

    def delete_self(self) -> None:
        """Clear records, close the file and remove it from disk.

        The in-memory sequence stays cleared even if removal fails.
        """
        with self._lock:
            self._debug.info(f"Deleting table: {self.name}")
            self._records.clear()
            self._close_file()
            try:
                self.path.unlink()
            except OSError as exc:
                self._debug.error(f"Failed to delete table file: {self.path}: {exc}")
                msg = f"Failed to delete table file: {self.name}. Might be missing permissions to delete the file."
                raise IOFatal(msg) from exc

    def close(self) -> None:
        with self._lock:
            self._close_file()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _index_of(self, key: object) -> int | None:
        """Linear scan; first match wins. Caller holds self._lock."""
        for i, r in enumerate(self._records):
            if r.key == key:
                return i
        return None

    def _check_open(self) -> None:
        if self._file is None:
            msg = f"Table {self.name} is closed. Reopen it with Client.open()."
            raise IOFatal(msg)

    @contextlib.contextmanager
    def _mutation(self) -> Iterator[list[Record[V]]]:
        """Hold the lock, yield the record list, then persist it.

        The list is restored to its previous contents if the body or the
        rewrite raises. Records are replaced, never modified in place, so a
        shallow snapshot is enough.
        """
        with self._lock:
            self._check_open()
            if self._poisoned:
                msg = f"Table {self.name} is poisoned by an earlier write failure. Reopen it."
                raise IOFatal(msg)
            snapshot = list(self._records)
            try:
                yield self._records
                self._save()
            except BaseException:
                self._records[:] = snapshot
                raise

    def _save(self) -> None:
        """Rewrite the whole file from memory. Caller holds self._lock."""
        data = self._codec.encode(self._records)
        f = self._file
        assert f is not None
        try:
            fcntl.flock(f, fcntl.LOCK_EX)
            try:
                f.seek(0)
                f.write(data)
                f.truncate(len(data))
                f.flush()
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)
        except OSError as exc:
            self._poisoned = True
            logger.exception("rewrite failed: %s", self.path)
            self._debug.error(f"Failed to write table file {self.path}: {exc}")
            msg = f"Failed to write table file {self.path}: {exc}"
            raise IOFatal(msg) from exc

    def _close_file(self) -> None:
        if self._file is not None:
            with contextlib.suppress(OSError):
                self._file.close()
            self._file = None
