"""Merging freshly fetched events into the store.

Source-owned fields are overwritten from the feed, gated by SEQUENCE.
Locally-owned fields are left alone, except that a meaningful change to an
event clears its rejection so moderators see it again.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

from ..events.models import SOURCE_FIELDS, Event
from ..store.database import EventStore
from ..store.exceptions import EventConflictError, EventNotFoundError
from ..store.models import StoredEvent
from .models import SyncResult

logger = logging.getLogger(__name__)

# Start-time shifts up to this size do not count as a significant change.
START_TOLERANCE = timedelta(seconds=60)


def _start_moved(old: Optional[datetime], new: Optional[datetime]) -> bool:
    if old is None or new is None:
        return old is not new
    return abs(new - old) > START_TOLERANCE


def has_significant_changes(existing: Event, incoming: Event) -> bool:
    """Whether an update at the same sequence should clear a rejection.

    Significant means the summary differs, the start moved by more than a
    minute, or the location differs (a missing location equals an empty one).
    """
    if existing.summary != incoming.summary:
        return True
    if _start_moved(existing.start_time, incoming.start_time):
        return True
    return (existing.location or "") != (incoming.location or "")


def changed_source_fields(existing: Event, incoming: Event) -> Dict[str, Any]:
    """Source-owned fields whose incoming value differs from the stored one."""
    return {
        name: getattr(incoming, name)
        for name in SOURCE_FIELDS
        if getattr(existing, name) != getattr(incoming, name)
    }


class EventReconciler:
    """Applies one organization's fetched events to the store, one at a time."""

    def __init__(self, store: EventStore):
        self.store = store

    async def sync(self, organization: str, events: Iterable[Event]) -> SyncResult:
        """Insert new events and update changed ones.

        Args:
            organization: Organization that owns every event
            events: Freshly fetched events

        Returns:
            Per-outcome counts; lost write races are listed in ``conflicts``

        Raises:
            StoreError: Database failure other than a write conflict
        """
        result = SyncResult(organization=organization)

        for event in events:
            if event.organization != organization:
                event = event.model_copy(update={"organization": organization})

            if not event.uid:
                logger.warning(f"Skipping event without UID for {organization}: {event.summary!r}")
                result.skipped += 1
                continue

            try:
                await self._reconcile(event, result)
            except (EventConflictError, EventNotFoundError) as e:
                logger.warning(f"Write conflict on {event.identity} for {organization}: {e.message}")
                result.conflicts.append(str(event.identity))

        logger.info(
            f"Reconciled {organization}: {result.inserted} inserted, {result.updated} updated, "
            f"{result.unchanged} unchanged, {result.stale} stale, {len(result.conflicts)} conflicts"
        )
        return result

    async def _reconcile(self, event: Event, result: SyncResult) -> None:
        organization = event.organization
        try:
            existing = await self.store.get_by_identity(organization, event.identity)
        except EventNotFoundError:
            new_event = event.model_copy(update={"rejected": False})
            await self.store.insert(new_event)
            logger.debug(f"New event {event.identity} for {organization}")
            result.inserted += 1
            return

        if event.sequence < existing.sequence:
            logger.debug(
                f"Ignoring stale {event.identity} for {organization} "
                f"(sequence {event.sequence} < {existing.sequence})"
            )
            result.stale += 1
            return

        fields = self._fields_to_write(existing, event)
        if not fields:
            result.unchanged += 1
            return

        await self.store.update(organization, event.identity, fields, existing.version)
        logger.verbose(f"Updated {sorted(fields)} on {event.identity} for {organization}")  # type: ignore[attr-defined]
        result.updated += 1
        if fields.get("rejected") is False:
            result.reset += 1
            logger.info(f"Cleared rejection of {event.identity} for {organization}")

    @staticmethod
    def _fields_to_write(existing: StoredEvent, event: Event) -> Dict[str, Any]:
        fields = changed_source_fields(existing, event)
        if not fields or not existing.rejected:
            return fields

        if event.sequence > existing.sequence or has_significant_changes(existing, event):
            fields["rejected"] = False
        return fields
