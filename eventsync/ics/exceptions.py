"""Feed fetching exceptions for error handling."""

from typing import Optional


class FeedFetchError(Exception):
    """Base exception for feed download errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url


class FeedHTTPError(FeedFetchError):
    """Exception raised when the feed responds with a non-2xx status."""


class FeedNetworkError(FeedFetchError):
    """Exception raised for transport-level failures."""


class FeedTimeoutError(FeedNetworkError):
    """Exception raised when the feed request times out."""


class FeedContentError(FeedFetchError):
    """Exception raised when the feed body cannot be decoded."""
