"""Debug sink: an append-only event log at <db_dir>/debug.log.

Lines look like:

    [2026-10-18 12:00:00,123] Info - Inserted record with key: user1
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from moodb.config import DebugLevel

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("moodb.debug")

DEBUG_FILENAME = "debug.log"
_FORMAT = "[%(asctime)s] %(debug_level)s - %(message)s"
_LOGGING_LEVELS = {
    DebugLevel.INFO: logging.INFO,
    DebugLevel.WARNING: logging.WARNING,
    DebugLevel.ERROR: logging.ERROR,
}


class DebugClient:
    """Write-only observer for table events.

    Disabled clients accept log() calls and drop them. When the log file
    cannot be opened the client stays enabled but only forwards to the
    module logger.
    """

    def __init__(
        self,
        enabled: bool,
        level: DebugLevel = DebugLevel.INFO,
        directory: Path | None = None,
    ) -> None:
        self.enabled = enabled
        self.level = level
        self.path: Path | None = None
        self._handler: logging.FileHandler | None = None
        # Private logger: one file handler per client, nothing global.
        self._logger = logging.Logger(f"moodb.debug.{id(self):x}", level=logging.INFO)
        self._logger.propagate = False

        if not enabled or directory is None:
            return

        path = directory / DEBUG_FILENAME
        try:
            handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as exc:
            logger.warning("debug log disabled, cannot open %s: %s", path, exc)
            return
        handler.setFormatter(logging.Formatter(_FORMAT))
        self._logger.addHandler(handler)
        self._handler = handler
        self.path = path

    def log(self, message: str, level: DebugLevel = DebugLevel.INFO) -> None:
        if not self.enabled or level.rank < self.level.rank:
            return
        logger.debug("%s - %s", level.value, message)
        if self._handler is not None:
            self._logger.log(_LOGGING_LEVELS[level], message, extra={"debug_level": level.value})

    def info(self, message: str) -> None:
        self.log(message, DebugLevel.INFO)

    def warning(self, message: str) -> None:
        self.log(message, DebugLevel.WARNING)

    def error(self, message: str) -> None:
        self.log(message, DebugLevel.ERROR)

    def close(self) -> None:
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None
