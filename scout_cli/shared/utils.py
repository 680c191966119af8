"""Serialization and hashing helpers."""

from __future__ import annotations

import base64
import hashlib
import json
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

_IDENTIFIER_QUOTE = "`"
_SAFE_TOKEN = re.compile(r"[^A-Za-z0-9._-]+")


def json_default(value: Any) -> Any:
    """`json.dumps` fallback for the value types MySQL drivers return."""

    if isinstance(value, Decimal):
        # Keep exact digits; DECIMAL and BIGINT aggregates lose precision as floats.
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return "base64:" + base64.b64encode(raw).decode("ascii")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_json(payload: Any, *, indent: int | None = 2) -> str:
    """Serialise a document the way every tool response and cache entry is written."""
    return json.dumps(payload, indent=indent, default=json_default, ensure_ascii=False)


def canonical_fingerprint(value: Any) -> str:
    """Return a stable text form for strings, sequences, and mappings."""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, default=json_default, separators=(",", ":"))


def stable_hash(value: Any, *, length: int = 16) -> str:
    """Hex digest prefix used to distinguish cache entries; not a security primitive."""
    digest = hashlib.sha256(canonical_fingerprint(value).encode("utf-8")).hexdigest()
    return digest[:length]


def safe_token(value: str) -> str:
    """Collapse characters that are awkward in file names into dashes."""
    cleaned = _SAFE_TOKEN.sub("-", value).strip("-")
    return cleaned or "unnamed"


def quote_identifier(name: str) -> str:
    """Backtick-quote a MySQL identifier, doubling embedded backticks."""
    return _IDENTIFIER_QUOTE + name.replace(_IDENTIFIER_QUOTE, _IDENTIFIER_QUOTE * 2) + _IDENTIFIER_QUOTE


def qualified_name(database: str | None, table: str) -> str:
    """Return `db`.`table` or just `table` when no database is given."""
    if database:
        return f"{quote_identifier(database)}.{quote_identifier(table)}"
    return quote_identifier(table)


def split_qualified_table(table: str, default_database: str | None) -> tuple[str | None, str]:
    """Split `database.table` notation, falling back to the default database."""
    if "." in table:
        database, _, name = table.partition(".")
        return database or default_database, name
    return default_database, table
