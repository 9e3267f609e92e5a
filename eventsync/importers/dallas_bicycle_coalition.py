"""Importer for the Dallas Bicycle Coalition events feed (a Sanity query result)."""

import logging
from datetime import timedelta
from typing import Any, List, Mapping, Optional

from ..events.models import Event
from ..ics.exceptions import FeedFetchError
from ..ics.text import escape_text
from .base import Importer, headers_from_options, parse_json_datetime
from .exceptions import ImporterDataError, ImporterFetchError

logger = logging.getLogger(__name__)

UID_PREFIX = "dbc_"

DEFAULT_DURATION = timedelta(hours=1)

# Escaped newline terminating each description paragraph.
PARAGRAPH_END = "\\n"


def build_description(item: Mapping[str, Any]) -> Optional[str]:
    """Escaped excerpt followed by every rich-text child, one paragraph each."""
    paragraphs: List[str] = []

    excerpt = item.get("excerpt") or ""
    if excerpt.strip():
        paragraphs.append(escape_text(excerpt) + PARAGRAPH_END)

    for block in item.get("description") or []:
        for child in block.get("children") or []:
            paragraphs.append(escape_text(child.get("text") or "") + PARAGRAPH_END)

    return "".join(paragraphs) or None


class DallasBicycleCoalitionImporter(Importer):
    """Reads the single-document ``{"result": [...]}`` feed."""

    name = "custom_dallas_bicycle_coalition"

    def convert(self, item: Mapping[str, Any], organization: str) -> Event:
        date = item.get("date") or {}
        start = parse_json_datetime(date.get("startDate"), self.default_timezone)
        end = parse_json_datetime(date.get("endDate"), self.default_timezone)
        if end is None and start is not None:
            end = start + DEFAULT_DURATION

        return Event(
            organization=organization,
            uid=f"{UID_PREFIX}{item.get('_id', '')}",
            summary=item.get("title") or "",
            description=build_description(item),
            location=item.get("location") or "",
            start_time=start,
            end_time=end,
            created=parse_json_datetime(item.get("_createdAt"), self.default_timezone),
        )

    async def import_events(
        self,
        endpoint: str,
        organization: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List[Event]:
        try:
            document = await self.fetcher.fetch_json(endpoint, headers_from_options(options) or None)
        except FeedFetchError as e:
            raise ImporterFetchError(f"Failed to fetch events for {organization}: {e.message}", organization) from e

        if not isinstance(document, dict) or not isinstance(document.get("result"), list):
            raise ImporterDataError(f"Expected a 'result' list in response for {organization}", organization)

        events = [self.convert(item, organization) for item in document["result"]]
        logger.info(f"Fetched {len(events)} events for {organization}")
        return events
