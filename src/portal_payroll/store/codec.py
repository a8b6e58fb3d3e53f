"""Value encoding between domain objects and stored documents.

Stored temporal values arrive in several shapes (native datetimes, dates,
ISO-8601 strings, ``{"seconds": ..., "nanoseconds": ...}`` timestamp
mappings). ``to_instant`` collapses all of them into a naive local
``datetime``; ``encode_value`` writes every instant back as a fixed-width
ISO string so lexical ordering in the database matches time ordering.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class _ServerTimestamp:
    """Sentinel replaced by the store's clock when a write is applied."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def to_instant(value: Any) -> datetime | None:
    """Normalize a stored temporal value to a naive local datetime."""
    if value is None:
        return None

    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            instant = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"Unparseable timestamp string: {value!r}") from exc
    elif isinstance(value, Mapping) and "seconds" in value:
        seconds = float(value["seconds"]) + float(value.get("nanoseconds", 0)) / 1e9
        return datetime.fromtimestamp(seconds)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if instant.tzinfo is not None:
        instant = instant.astimezone().replace(tzinfo=None)
    return instant


def encode_instant(value: date | datetime) -> str:
    """Encode an instant as a fixed-width ISO string."""
    instant = to_instant(value)
    if instant is None:
        raise ValueError("Cannot encode a missing instant")
    return instant.isoformat(timespec="microseconds")


def encode_value(value: Any, server_now: datetime | None = None) -> Any:
    """Encode a Python value into its JSON document representation.

    ``SERVER_TIMESTAMP`` is resolved to ``server_now`` when given and left
    in place otherwise.
    """
    if value is SERVER_TIMESTAMP:
        return encode_instant(server_now) if server_now is not None else value
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (datetime, date)):
        return encode_instant(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): encode_value(v, server_now) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v, server_now) for v in value]
    return value
