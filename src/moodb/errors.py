"""Error taxonomy for table and client operations.

Every failure is a MooError carrying a kind tag and a human-readable message.
Severity mirrors the three result channels callers care about:

    WARN   advisory; nothing was changed (duplicate insert, empty bulk input)
    ERROR  the request could not be satisfied (missing key, unreadable table)
    FATAL  a filesystem or lock operation failed; the table is poisoned
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    NOT_FOUND = "NotFound"
    ALREADY_EXISTS = "AlreadyExists"
    EMPTY_INPUT = "EmptyInput"
    CORRUPT_TABLE = "CorruptTable"
    IO_FATAL = "IOFatal"
    CODEC = "Codec"


class Severity(Enum):
    WARN = "Warn"
    ERROR = "Error"
    FATAL = "Fatal"


class MooError(Exception):
    """Base class for all store errors."""

    kind: ErrorKind
    severity: Severity = Severity.ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARN

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class NotFound(MooError, LookupError):
    kind = ErrorKind.NOT_FOUND


class AlreadyExists(MooError):
    kind = ErrorKind.ALREADY_EXISTS
    severity = Severity.WARN


class EmptyInput(MooError):
    kind = ErrorKind.EMPTY_INPUT
    severity = Severity.WARN


class CorruptTable(MooError):
    kind = ErrorKind.CORRUPT_TABLE


class IOFatal(MooError):
    """Filesystem or lock failure. Reopen the table to recover."""

    kind = ErrorKind.IO_FATAL
    severity = Severity.FATAL
