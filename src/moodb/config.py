"""Configuration: the three options a client recognizes, plus moodb.toml loading.

Default layout (relative to the working directory, or to the directory that
holds moodb.toml):

    moodb.toml            # optional project config
    db/moo/
        <table>.json      # one file per table
        debug.log         # only when debug_mode is on

moodb.toml example:

    [moodb]
    db_dir = "db/moo"
    debug_mode = true
    debug_level = "Warning"   # Info | Warning | Error
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "moodb.toml"
DEFAULT_DIR = "db/moo"


class DebugLevel(Enum):
    """Minimum level emitted by the debug sink. Ordered Info < Warning < Error."""

    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    @classmethod
    def parse(cls, value: str | DebugLevel) -> DebugLevel:
        if isinstance(value, DebugLevel):
            return value
        for level in cls:
            if level.value.lower() == str(value).lower():
                return level
        msg = f"Unknown debug_level: {value!r} (expected Info, Warning or Error)"
        raise ValueError(msg)


_LEVEL_RANK = {DebugLevel.INFO: 0, DebugLevel.WARNING: 1, DebugLevel.ERROR: 2}


@dataclass(frozen=True)
class Configuration:
    """Immutable client configuration."""

    db_dir: str = DEFAULT_DIR
    debug_mode: bool = False
    debug_level: DebugLevel = DebugLevel.INFO


def load_config(root: Path | str | None = None) -> Configuration:
    """Load moodb.toml from root (or search upward from cwd if root is None).

    Missing file means defaults. A relative db_dir is resolved against the
    directory that holds moodb.toml.
    """
    start = Path(root) if root else Path.cwd()
    root_path = _find_root(start)
    config_path = root_path / _CONFIG_FILENAME

    if not config_path.exists():
        return Configuration()

    with config_path.open("rb") as f:
        raw: dict[str, Any] = tomllib.load(f)
    section = raw.get("moodb", {})

    db_dir = Path(str(section.get("db_dir", DEFAULT_DIR)))
    if not db_dir.is_absolute():
        db_dir = root_path / db_dir

    return Configuration(
        db_dir=str(db_dir),
        debug_mode=bool(section.get("debug_mode", False)),
        debug_level=DebugLevel.parse(section.get("debug_level", DebugLevel.INFO.value)),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for moodb.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path, db_dir: str = DEFAULT_DIR) -> Path:
    """Write a default moodb.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"moodb.toml already exists at {config_path}"
        raise FileExistsError(msg)

    content = f"""\
[moodb]
db_dir = "{db_dir}"
# debug_mode = false      # append events to <db_dir>/debug.log
# debug_level = "Info"    # Info | Warning | Error
"""
    config_path.write_text(content)
    return config_path
