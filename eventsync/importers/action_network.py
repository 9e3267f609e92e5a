"""Importer for the Action Network events API.

The API is a paginated OSDI collection: each page carries its events under
``_embedded["osdi:events"]`` and, unless it is the last, a ``_links.next.href``
pointing at the following page.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Set

from ..events.models import Event
from ..ics.exceptions import FeedFetchError
from ..ics.field_mapper import get_zone
from ..ics.text import escape_text
from .base import Importer, option, parse_json_datetime
from .exceptions import ImporterConfigError, ImporterDataError, ImporterFetchError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://actionnetwork.org/api/v2/events"

IDENTIFIER_PREFIX = "action_network"

DEFAULT_DURATION = timedelta(hours=1)


def select_uid(identifiers: Optional[List[str]]) -> str:
    """First identifier in the ``action_network:`` namespace, or empty."""
    for identifier in identifiers or []:
        parts = identifier.split(":")
        if len(parts) > 1 and parts[0] == IDENTIFIER_PREFIX:
            return identifier
    return ""


def format_location(location: Optional[Mapping[str, Any]]) -> str:
    """Join venue, address lines, locality, region and postal code."""
    location = location or {}
    parts: List[str] = []
    if location.get("venue"):
        parts.append(location["venue"])
    address_lines = [line for line in location.get("address_lines") or [] if line]
    if address_lines:
        parts.append(", ".join(address_lines))
    for key in ("locality", "region", "postal_code"):
        if location.get(key):
            parts.append(location[key])
    return ", ".join(parts)


class ActionNetworkImporter(Importer):
    """Follows an Action Network event collection page by page."""

    name = "action_network_api"

    def _wall_clock(self, value: Optional[datetime]) -> Optional[datetime]:
        # The API reports local wall-clock times with a UTC designator.
        if value is None:
            return None
        zone = get_zone(self.default_timezone) or timezone.utc
        return value.replace(tzinfo=zone)

    def convert(self, item: Mapping[str, Any], organization: str) -> Event:
        """Convert one OSDI event into an Event."""
        start = self._wall_clock(parse_json_datetime(item.get("start_date"), self.default_timezone))
        end = self._wall_clock(parse_json_datetime(item.get("end_date"), self.default_timezone))
        if end is None and start is not None:
            end = start + DEFAULT_DURATION

        created = parse_json_datetime(item.get("created_date"), self.default_timezone)
        description = (
            f"Register for this event from {organization} on Action Network: {item.get('browser_url') or ''}"
        )

        return Event(
            organization=organization,
            uid=select_uid(item.get("identifiers")),
            summary=item.get("title") or "",
            description=escape_text(description),
            location=format_location(item.get("location")),
            start_time=start,
            end_time=end,
            created=created,
            modified=created,
            status=(item.get("status") or "").upper(),
            transparency="OPAQUE",
        )

    async def _pages(
        self, endpoint: str, headers: Dict[str, str], organization: str
    ) -> AsyncIterator[Dict[str, Any]]:
        url: Optional[str] = endpoint
        seen: Set[str] = set()
        while url:
            if url in seen:
                raise ImporterDataError(f"Pagination loop at {url} for {organization}", organization)
            seen.add(url)

            try:
                page = await self.fetcher.fetch_json(url, headers)
            except FeedFetchError as e:
                raise ImporterFetchError(
                    f"Failed to fetch events from Action Network API for {organization}: {e.message}",
                    organization,
                ) from e

            if not isinstance(page, dict):
                raise ImporterDataError(f"Unexpected Action Network response for {organization}", organization)

            yield page
            url = ((page.get("_links") or {}).get("next") or {}).get("href")

    async def import_events(
        self,
        endpoint: str,
        organization: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[Event]:
        api_key = option(options, "api_key")
        if api_key is None:
            raise ImporterConfigError(
                f"Action Network api_key not found in options for organization {organization}", organization
            )

        headers = {
            "OSDI-API-Token": api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

        events: List[Event] = []
        page_count = 0
        async for page in self._pages(endpoint or DEFAULT_ENDPOINT, headers, organization):
            page_count += 1
            items = (page.get("_embedded") or {}).get("osdi:events") or []
            for item in items:
                events.append(self.convert(item, organization))

        logger.info(f"Fetched {len(events)} Action Network events over {page_count} pages for {organization}")
        return events
