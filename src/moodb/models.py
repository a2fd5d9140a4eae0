"""Data models for the record store."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

V = TypeVar("V")


def check_key(key: object) -> str:
    """Return key unchanged, or raise TypeError if it is not a string."""
    if not isinstance(key, str):
        msg = f"Record keys must be str, got {type(key).__name__}"
        raise TypeError(msg)
    return key


def check_keys(keys: Iterable[str]) -> set[str]:
    """Return keys as a set. A bare string is rejected rather than split into characters."""
    if isinstance(keys, (str, bytes)):
        msg = f"Expected an iterable of keys, got a single {type(keys).__name__}: {keys!r}"
        raise TypeError(msg)
    return {check_key(k) for k in keys}


@dataclass
class Record(Generic[V]):
    """A single (key, value) pair as stored in a table file."""

    key: str
    value: V

    @classmethod
    def coerce(cls, item: Record[V] | tuple[str, V] | Mapping[str, Any]) -> Record[V]:
        """Accept a Record, a (key, value) tuple or list, or a {"key", "value"} mapping."""
        if isinstance(item, Record):
            return cls(key=check_key(item.key), value=item.value)
        if isinstance(item, Mapping):
            if set(item) != {"key", "value"}:
                msg = f"Expected a mapping with exactly \"key\" and \"value\", got {item!r}"
                raise TypeError(msg)
            return cls(key=check_key(item["key"]), value=item["value"])
        if not isinstance(item, (tuple, list)) or len(item) != 2:
            msg = f"Expected a Record or a (key, value) pair, got {item!r}"
            raise TypeError(msg)
        key, value = item
        return cls(key=check_key(key), value=value)

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value}
