"""Event store exceptions."""

from typing import Optional


class StoreError(Exception):
    """Base exception for event store failures."""

    def __init__(self, message: str, organization: Optional[str] = None, identity: Optional[object] = None):
        super().__init__(message)
        self.message = message
        self.organization = organization
        self.identity = identity


class EventNotFoundError(StoreError):
    """Exception raised when no row matches an identity."""


class EventConflictError(StoreError):
    """Exception raised when a concurrent writer changed the row first.

    The caller may re-read the row and try again.
    """

    retryable = True
