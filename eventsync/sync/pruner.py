"""Removal of events an organization no longer publishes."""

import logging
from typing import Iterable, Set

from ..events.models import Event, EventIdentity
from ..store.database import EventStore
from ..store.exceptions import StoreError
from .models import PruneResult

logger = logging.getLogger(__name__)


class EventPruner:
    """Deletes stored rows whose identity is absent from the latest fetch."""

    def __init__(self, store: EventStore):
        self.store = store

    async def prune(self, organization: str, events: Iterable[Event]) -> PruneResult:
        """Delete this organization's rows that the fetch did not return.

        Only rows owned by ``organization`` are considered. A failed delete
        is recorded and the remaining rows are still processed.

        Args:
            organization: Organization whose rows are pruned
            events: The complete, successful fetch for the organization

        Returns:
            Count of deleted rows plus per-row errors
        """
        result = PruneResult(organization=organization)
        keep: Set[EventIdentity] = {EventIdentity.create(e.uid, e.recurrence_id) for e in events}

        stored = await self.store.list_by_organization(organization)
        for row in stored:
            identity = EventIdentity.create(row.uid, row.recurrence_id)
            if identity in keep:
                continue

            try:
                if await self.store.delete_by_identity(row.uid, organization, row.recurrence_id):
                    result.pruned += 1
                    logger.debug(f"Pruned {identity} for {organization}")
            except StoreError as e:
                logger.error(f"Failed to prune {identity} for {organization}: {e.message}")
                result.errors.append(f"{identity}: {e.message}")

        if result.pruned:
            logger.info(f"Pruned {result.pruned} events no longer published by {organization}")
        return result
