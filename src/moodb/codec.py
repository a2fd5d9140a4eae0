"""Byte-level codecs between a record sequence and a table file.

A codec must round-trip: decode(encode(records)) == records. The empty
sequence encodes to zero bytes, and zero bytes decode to the empty sequence;
that is the only input that decodes without content.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Protocol

from moodb.errors import ErrorKind, MooError
from moodb.models import Record

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


class CodecError(MooError, ValueError):
    """Records cannot be encoded, or bytes cannot be decoded into records."""

    kind = ErrorKind.CODEC


class Codec(Protocol):
    extension: str

    def encode(self, records: Sequence[Record[Any]]) -> bytes: ...

    def decode(self, data: bytes) -> list[Record[Any]]: ...


class JsonCodec:
    """Compact JSON array of {"key": ..., "value": ...} objects.

    dump_value / load_value convert between user values and JSON-compatible
    data, e.g. dataclasses.asdict and a class constructor.
    """

    extension = "json"

    def __init__(
        self,
        dump_value: Callable[[Any], Any] | None = None,
        load_value: Callable[[Any], Any] | None = None,
    ) -> None:
        self._dump_value = dump_value
        self._load_value = load_value

    def encode(self, records: Sequence[Record[Any]]) -> bytes:
        if not records:
            return b""
        items = []
        for r in records:
            value = r.value
            if self._dump_value is not None:
                try:
                    value = self._dump_value(value)
                except Exception as exc:
                    msg = f"Record {r.key} could not be dumped: {exc}"
                    raise CodecError(msg) from exc
            items.append({"key": r.key, "value": value})
        try:
            text = json.dumps(items, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            msg = f"Value is not JSON serializable: {exc}"
            raise CodecError(msg) from exc
        return text.encode("utf-8")

    def decode(self, data: bytes) -> list[Record[Any]]:
        if not data:
            return []
        try:
            raw = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            msg = f"Invalid JSON: {exc}"
            raise CodecError(msg) from exc

        if not isinstance(raw, list):
            msg = f"Expected a JSON array, got {type(raw).__name__}"
            raise CodecError(msg)

        records: list[Record[Any]] = []
        seen: set[str] = set()
        for i, obj in enumerate(raw):
            if not isinstance(obj, dict) or "key" not in obj or "value" not in obj:
                msg = f"Entry {i} is not a {{key, value}} object"
                raise CodecError(msg)
            key = obj["key"]
            if not isinstance(key, str):
                msg = f"Entry {i} has a non-string key: {key!r}"
                raise CodecError(msg)
            if key in seen:
                msg = f"Duplicate key in table data: {key}"
                raise CodecError(msg)
            seen.add(key)
            value = obj["value"]
            if self._load_value is not None:
                try:
                    value = self._load_value(value)
                except Exception as exc:
                    msg = f"Entry {i} ({key}) could not be loaded: {exc}"
                    raise CodecError(msg) from exc
            records.append(Record(key=key, value=value))
        return records
