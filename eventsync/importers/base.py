"""Abstract base class for event importers."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from dateutil.parser import isoparse

from ..events.models import Event
from ..ics.fetcher import FeedFetcher
from ..ics.field_mapper import DEFAULT_TIMEZONE, get_zone

logger = logging.getLogger(__name__)


class Importer(ABC):
    """Turns one upstream source into canonical events."""

    #: Name the importer is registered under.
    name: str = ""

    def __init__(self, fetcher: FeedFetcher, default_timezone: str = DEFAULT_TIMEZONE):
        """Initialize importer.

        Args:
            fetcher: Shared feed fetcher
            default_timezone: Zone applied to floating local times
        """
        self.fetcher = fetcher
        self.default_timezone = default_timezone

    @abstractmethod
    async def import_events(
        self,
        endpoint: str,
        organization: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[Event]:
        """Fetch and convert every event the source currently lists.

        Args:
            endpoint: Source URL
            organization: Organization stamped on every event
            options: Importer-specific options (e.g. API keys)

        Returns:
            Events in source order

        Raises:
            ImporterError: The source could not be fetched or understood
        """


def option(options: Optional[Mapping[str, Any]], key: str) -> Optional[str]:
    """Read a string option, treating blanks as absent."""
    if not options:
        return None
    value = options.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def headers_from_options(options: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Extra request headers given under the ``headers`` option."""
    raw = (options or {}).get("headers") or {}
    return {str(k): str(v) for k, v in raw.items()}


def parse_json_datetime(value: Any, default_timezone: str = DEFAULT_TIMEZONE) -> Optional[datetime]:
    """Parse an ISO 8601 value from a JSON feed into an aware datetime.

    Values without an offset are read as wall-clock times in
    ``default_timezone``. Unparseable values yield None.
    """
    if not value:
        return None
    try:
        parsed = isoparse(str(value))
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable date: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=get_zone(default_timezone) or timezone.utc)
    return parsed
