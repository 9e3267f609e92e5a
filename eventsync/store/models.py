"""Persistence models for stored events."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pydantic import Field

from ..events.models import LOCAL_FIELDS, SOURCE_FIELDS, Event

DATETIME_COLUMNS = frozenset({"start_time", "end_time", "created", "modified"})

# Column order for inserts; identity columns first.
EVENT_COLUMNS = ("organization", "uid", "recurrence_id", *SOURCE_FIELDS, *LOCAL_FIELDS)


class StoredEvent(Event):
    """An event as persisted, with its row id and write version."""

    id: Optional[int] = None
    version: int = Field(default=1, ge=1)


def encode_datetime(value: Optional[datetime]) -> Optional[str]:
    """Store datetimes as UTC ISO strings so lexical order is time order."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def encode_column(name: str, value: Any) -> Any:
    """Convert a field value into its SQLite representation."""
    if name in DATETIME_COLUMNS:
        return encode_datetime(value)
    if name == "overlay":
        return json.dumps(value or {}, sort_keys=True)
    if name == "rejected":
        return int(bool(value))
    return value


def event_to_row(event: Event) -> tuple:
    """Column values of an event in ``EVENT_COLUMNS`` order."""
    return tuple(encode_column(name, getattr(event, name)) for name in EVENT_COLUMNS)


def row_to_stored_event(row: Mapping[str, Any]) -> StoredEvent:
    """Build a StoredEvent from a database row."""
    data: Dict[str, Any] = {name: row[name] for name in EVENT_COLUMNS}
    data["id"] = row["id"]
    data["version"] = row["version"]
    data["rejected"] = bool(data["rejected"])
    data["overlay"] = json.loads(data["overlay"]) if data["overlay"] else {}
    for name in DATETIME_COLUMNS:
        if data[name]:
            data[name] = datetime.fromisoformat(data[name])
    return StoredEvent(**data)
