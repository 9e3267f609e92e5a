"""Outbound ICS document generation from persisted events."""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from icalendar import Calendar, Event as ICalEvent
from icalendar.prop import vInline

from ..events.models import Event
from .field_mapper import DEFAULT_TIMEZONE, get_zone

logger = logging.getLogger(__name__)

PRODID = "-//eventsync//Community Events//EN"


def _merge_exdates(event: Event) -> List[str]:
    exdates: List[str] = []
    for raw in (event.exdate, event.exdate_manual):
        if raw:
            exdates.extend(part for part in raw.split(",") if part)
    return exdates


def _add_opaque(component: ICalEvent, name: str, value: Optional[str]) -> None:
    # Recurrence data is forwarded as stored, never re-parsed.
    if value:
        component.add(name, vInline(value), encode=False)


def build_event_component(event: Event, default_timezone: str = DEFAULT_TIMEZONE) -> ICalEvent:
    """Build one VEVENT for a persisted event."""
    zone = get_zone(default_timezone) or timezone.utc
    component = ICalEvent()

    component.add("uid", event.uid)
    component.add("dtstamp", datetime.now(timezone.utc))
    if event.start_time is not None:
        component.add("dtstart", event.start_time.astimezone(zone))
    if event.end_time is not None:
        component.add("dtend", event.end_time.astimezone(zone))

    if event.summary:
        component.add("summary", vInline(event.summary), encode=False)
    # Stored text is already in ICS form (escaped upstream or at import).
    if event.description:
        component.add("description", vInline(event.description), encode=False)
    if event.location:
        component.add("location", vInline(event.location), encode=False)

    if event.organization:
        component.add("x-organizing-group", event.organization)
    component.add("x-event-type", event.type)
    component.add("x-rejected", "true" if event.rejected else "false")

    if event.sequence > 0:
        component.add("sequence", event.sequence)

    _add_opaque(component, "recurrence-id", event.recurrence_id)
    _add_opaque(component, "rrule", event.rrule)
    _add_opaque(component, "rdate", event.rdate)

    exdates = _merge_exdates(event)
    if exdates:
        _add_opaque(component, "exdate", ",".join(exdates))

    if event.created is not None:
        component.add("created", event.created.astimezone(timezone.utc))
    if event.modified is not None:
        component.add("last-modified", event.modified.astimezone(timezone.utc))

    return component


def build_calendar(
    events: Iterable[Event],
    default_timezone: str = DEFAULT_TIMEZONE,
    include_rejected: bool = False,
) -> bytes:
    """Serialize events into an ICS document.

    Args:
        events: Persisted events
        default_timezone: Zone DTSTART/DTEND are expressed in
        include_rejected: Also emit events rejected by moderation

    Returns:
        ICS document bytes (CRLF line endings, folded)
    """
    calendar = Calendar()
    calendar.add("prodid", PRODID)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("x-wr-timezone", default_timezone)

    written = 0
    for event in events:
        if event.rejected and not include_rejected:
            continue
        logger.debug(f"Writing event {event.identity}")
        calendar.add_component(build_event_component(event, default_timezone))
        written += 1

    logger.info(f"Built calendar with {written} events")
    return calendar.to_ical()
