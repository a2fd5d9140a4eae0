"""Embedded, file-persisted, typed key-value tables.

Layout:
    db/moo/
        <table>.json      # JSON array of {"key": ..., "value": ...}, rewritten per mutation
        debug.log         # optional event log (debug_mode)

Each table is held fully in memory. Every successful mutation rewrites the
table file in full (seek 0, write, truncate, flush) under the table's lock,
so the file always decodes to the current record sequence.
"""

from moodb.client import Client
from moodb.codec import Codec, CodecError, JsonCodec
from moodb.config import Configuration, DebugLevel, init_config, load_config
from moodb.debug import DebugClient
from moodb.errors import (
    AlreadyExists,
    CorruptTable,
    EmptyInput,
    ErrorKind,
    IOFatal,
    MooError,
    NotFound,
    Severity,
)
from moodb.models import Record
from moodb.table import Table

__all__ = [
    "AlreadyExists",
    "Client",
    "Codec",
    "CodecError",
    "Configuration",
    "CorruptTable",
    "DebugClient",
    "DebugLevel",
    "EmptyInput",
    "ErrorKind",
    "IOFatal",
    "JsonCodec",
    "MooError",
    "NotFound",
    "Record",
    "Severity",
    "Table",
    "init_config",
    "load_config",
]
