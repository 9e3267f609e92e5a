"""Importer for plain ICS feeds."""

import logging
from typing import Any, List, Mapping, Optional

from ..events.models import Event
from ..ics.decoder import ICSDecoder
from ..ics.exceptions import FeedFetchError
from ..ics.fetcher import FeedFetcher
from ..ics.field_mapper import DEFAULT_TIMEZONE
from .base import Importer, headers_from_options
from .exceptions import ImporterFetchError

logger = logging.getLogger(__name__)


class ICSImporter(Importer):
    """Downloads an ICS document and decodes every VEVENT in it."""

    name = "ical"

    def __init__(self, fetcher: FeedFetcher, default_timezone: str = DEFAULT_TIMEZONE):
        super().__init__(fetcher, default_timezone)
        self.decoder = ICSDecoder(default_timezone=default_timezone)

    async def import_events(
        self,
        endpoint: str,
        organization: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[Event]:
        try:
            content = await self.fetcher.fetch_text(endpoint, headers_from_options(options) or None)
        except FeedFetchError as e:
            raise ImporterFetchError(f"Failed to fetch ICS feed for {organization}: {e.message}", organization) from e

        events = self.decoder.decode_all(content, organization)
        logger.info(f"Decoded {len(events)} events from ICS feed for {organization}")
        return events
