"""Canonical event model shared by importers, storage and reconciliation."""

from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

# Fields copied from the feed on every sync. Order matches the storage columns.
SOURCE_FIELDS = (
    "summary",
    "description",
    "location",
    "start_time",
    "end_time",
    "created",
    "modified",
    "status",
    "transparency",
    "sequence",
    "rrule",
    "rdate",
    "exdate",
)

# Fields owned by local moderation; ingestion only ever resets ``rejected``.
LOCAL_FIELDS = (
    "rejected",
    "type",
    "overlay",
    "exdate_manual",
)


class EventIdentity(NamedTuple):
    """Identity key of one calendar occurrence within an organization."""

    uid: str
    recurrence_id: str = ""

    @classmethod
    def create(cls, uid: str, recurrence_id: Optional[str] = None) -> "EventIdentity":
        """Build an identity, treating a missing recurrence id as the series master."""
        return cls(uid, recurrence_id or "")

    def __str__(self) -> str:
        if self.recurrence_id:
            return f"{self.uid}:{self.recurrence_id}"
        return self.uid


class Event(BaseModel):
    """One calendar occurrence as seen from a source."""

    # Identification
    uid: str = Field(default="", description="Source-stable opaque identifier")
    recurrence_id: str = Field(
        default="", description="Modified instance of a series; empty for the master"
    )
    organization: str = Field(default="", description="Owning organization")

    # Display text
    summary: str = ""
    description: Optional[str] = None
    location: Optional[str] = None

    # Time information
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None

    # Source enumerations, passed through verbatim
    status: Optional[str] = None
    transparency: Optional[str] = None

    # Revision counter
    sequence: int = Field(default=0, ge=0)

    # Opaque recurrence data
    rrule: Optional[str] = None
    rdate: Optional[str] = None
    exdate: Optional[str] = None

    # Locally owned moderation state
    rejected: bool = False
    type: str = ""
    overlay: Dict[str, Any] = Field(default_factory=dict)
    exdate_manual: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("recurrence_id", mode="before")
    @classmethod
    def _normalize_recurrence_id(cls, value: Any) -> str:
        return value or ""

    @field_validator("start_time", "end_time", "created", "modified")
    @classmethod
    def _require_aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive values are taken as UTC, matching how the store encodes them
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_serializer("start_time", "end_time", "created", "modified")
    def serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat() if dt is not None else None

    @property
    def identity(self) -> EventIdentity:
        """Identity key ``(uid, recurrence_id)``."""
        return EventIdentity(self.uid, self.recurrence_id)

    def source_values(self) -> Dict[str, Any]:
        """Values of all source-owned fields."""
        return {name: getattr(self, name) for name in SOURCE_FIELDS}
