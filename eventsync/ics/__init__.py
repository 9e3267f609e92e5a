"""ICS feed downloading, decoding and writing module."""

from .decoder import ICSDecoder, iter_content_lines, parse_content_line, unfold_lines
from .exceptions import (
    FeedContentError,
    FeedFetchError,
    FeedHTTPError,
    FeedNetworkError,
    FeedTimeoutError,
)
from .fetcher import FeedFetcher
from .field_mapper import FieldMapper, parse_ics_datetime, parse_sequence
from .models import ContentLine
from .text import escape_text
from .writer import build_calendar

__all__ = [
    "ContentLine",
    "FeedContentError",
    "FeedFetchError",
    "FeedFetcher",
    "FeedHTTPError",
    "FeedNetworkError",
    "FeedTimeoutError",
    "FieldMapper",
    "ICSDecoder",
    "build_calendar",
    "escape_text",
    "iter_content_lines",
    "parse_content_line",
    "parse_ics_datetime",
    "parse_sequence",
    "unfold_lines",
]
