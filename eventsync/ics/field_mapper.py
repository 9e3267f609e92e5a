"""Mapping of ICS properties onto event fields.

Feeds are frequently non-conformant, so every conversion here is fail-open: a
value that cannot be parsed leaves its field untouched and the event is still
accepted.
"""

import logging
import re
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from typing import Callable, Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..events.models import Event
from .models import ContentLine

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Chicago"

UTC_PATTERN = re.compile(r"\d{8}T\d{6}")
UTC_FORMAT = "%Y%m%dT%H%M%S"

# Tried in order; the first layout matching the whole value wins. strptime alone
# does not enforce field widths, so each format is paired with its exact layout.
LOCAL_FORMATS = (
    (re.compile(r"\d{8}T\d{6}"), "%Y%m%dT%H%M%S"),
    (re.compile(r"\d{8}T\d{4}"), "%Y%m%dT%H%M"),
    (re.compile(r"\d{8}T\d{2}"), "%Y%m%dT%H"),
    (re.compile(r"\d{8}"), "%Y%m%d"),
    (re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}"), "%Y-%m-%dT%H:%M:%S"),
    (re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}"), "%Y-%m-%dT%H:%M"),
    (re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}"), "%Y-%m-%dT%H"),
    (re.compile(r"\d{4}-\d{2}-\d{2}"), "%Y-%m-%d"),
)


@lru_cache(maxsize=64)
def get_zone(name: str) -> Optional[tzinfo]:
    """Resolve an IANA zone name, returning None if it is unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}")
        return None


def parse_ics_datetime(
    value: str,
    params: Optional[Mapping[str, str]] = None,
    default_timezone: str = DEFAULT_TIMEZONE,
) -> Optional[datetime]:
    """Parse an ICS date or date-time value into an aware datetime.

    Args:
        value: Raw property value, e.g. ``20250101T120000Z``
        params: Property parameters; ``TZID`` selects the zone for local times
        default_timezone: Zone used for local times without ``TZID``

    Returns:
        Timezone-aware datetime, or None if the value could not be parsed
    """
    value = value.strip()

    if value[-1:] in ("Z", "z"):
        stamp = value[:-1]
        if UTC_PATTERN.fullmatch(stamp):
            try:
                return datetime.strptime(stamp, UTC_FORMAT).replace(tzinfo=timezone.utc)
            except ValueError:
                pass
        logger.debug(f"Unparseable UTC date-time: {value!r}")
        return None

    zone_name = default_timezone
    if params:
        tzid = params.get("TZID")
        if tzid:
            zone_name = tzid.strip('"')

    zone = get_zone(zone_name)
    if zone is None:
        return None

    for layout, fmt in LOCAL_FORMATS:
        if not layout.fullmatch(value):
            continue
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=zone)
        except ValueError:
            # Right layout, impossible date (e.g. month 13)
            break

    logger.debug(f"Unparseable date-time: {value!r}")
    return None


def parse_sequence(value: str) -> int:
    """Parse a SEQUENCE value; anything but a non-negative integer yields 0."""
    try:
        sequence = int(value.strip(), 10)
    except ValueError:
        logger.debug(f"Unparseable sequence: {value!r}")
        return 0
    return max(sequence, 0)


Handler = Callable[[Event, ContentLine], None]


class FieldMapper:
    """Populates an Event from decoded ICS content lines."""

    def __init__(self, default_timezone: str = DEFAULT_TIMEZONE):
        """Initialize field mapper.

        Args:
            default_timezone: Zone applied to floating local times
        """
        self.default_timezone = default_timezone
        self._handlers: Dict[str, Handler] = {
            "UID": self._text("uid"),
            "SUMMARY": self._text("summary"),
            "DESCRIPTION": self._text("description"),
            "LOCATION": self._text("location"),
            "DTSTART": self._datetime("start_time"),
            "DTEND": self._datetime("end_time"),
            "CREATED": self._datetime("created"),
            "LAST-MODIFIED": self._datetime("modified"),
            "STATUS": self._text("status"),
            "TRANSP": self._text("transparency"),
            "SEQUENCE": self._sequence,
            "RECURRENCE-ID": self._text("recurrence_id"),
            "RRULE": self._text("rrule"),
            "RDATE": self._text("rdate"),
            "EXDATE": self._text("exdate"),
        }

    @property
    def properties(self) -> frozenset:
        """Property names this mapper understands."""
        return frozenset(self._handlers)

    def apply(self, event: Event, line: ContentLine) -> None:
        """Apply one content line to an event; unknown properties are ignored."""
        handler = self._handlers.get(line.name)
        if handler is not None:
            handler(event, line)

    @staticmethod
    def _text(field: str) -> Handler:
        def handler(event: Event, line: ContentLine) -> None:
            setattr(event, field, line.value)

        return handler

    def _datetime(self, field: str) -> Handler:
        def handler(event: Event, line: ContentLine) -> None:
            parsed = parse_ics_datetime(line.value, line.params, self.default_timezone)
            if parsed is not None:
                setattr(event, field, parsed)

        return handler

    @staticmethod
    def _sequence(event: Event, line: ContentLine) -> None:
        event.sequence = parse_sequence(line.value)
