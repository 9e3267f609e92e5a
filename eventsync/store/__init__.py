"""Event persistence package."""

from .database import EventStore
from .exceptions import EventConflictError, EventNotFoundError, StoreError
from .models import StoredEvent

__all__ = ["EventConflictError", "EventNotFoundError", "EventStore", "StoreError", "StoredEvent"]
