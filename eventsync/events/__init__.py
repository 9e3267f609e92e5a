"""Event domain model."""

from .models import LOCAL_FIELDS, SOURCE_FIELDS, Event, EventIdentity

__all__ = ["LOCAL_FIELDS", "SOURCE_FIELDS", "Event", "EventIdentity"]
