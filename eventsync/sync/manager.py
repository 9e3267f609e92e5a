"""Sync driver running every organization's fetch, reconcile and prune pipeline."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from ..importers.exceptions import ImporterError
from ..importers.registry import ImporterRegistry
from ..store.database import EventStore
from ..store.exceptions import StoreError
from .models import OrganizationSyncReport, SyncRunReport
from .pruner import EventPruner
from .reconciler import EventReconciler

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4


class SyncManager:
    """Coordinates one sync run across configured organizations.

    Organizations run concurrently, bounded by a semaphore; within one
    organization events are reconciled sequentially. A failing organization
    is reported and does not affect the others.
    """

    def __init__(
        self,
        settings: Any,
        store: EventStore,
        registry: ImporterRegistry,
        concurrency: Optional[int] = None,
    ):
        """Initialize sync manager.

        Args:
            settings: Application settings (organizations, concurrency)
            store: Event store
            registry: Importers by source-type name
            concurrency: Override for the number of organizations synced at once
        """
        self.settings = settings
        self.store = store
        self.registry = registry
        self.reconciler = EventReconciler(store)
        self.pruner = EventPruner(store)

        limit = concurrency or getattr(settings, "sync_concurrency", None) or DEFAULT_CONCURRENCY
        self.concurrency = max(1, int(limit))

        logger.info(f"Sync manager initialized (concurrency={self.concurrency})")

    def _selected_organizations(self, names: Optional[Iterable[str]]) -> List[str]:
        configured = getattr(self.settings, "organizations", {}) or {}
        if names is None:
            return [name for name, org in configured.items() if org.enabled]

        selected = []
        for name in names:
            if name not in configured:
                logger.warning(f"Organization {name!r} is not configured")
                continue
            selected.append(name)
        return selected

    async def sync_organization(self, name: str) -> OrganizationSyncReport:
        """Fetch, reconcile and prune one organization.

        Failures are logged and recorded on the returned report.
        """
        org = self.settings.organizations[name]
        report = OrganizationSyncReport(organization=name, importer=org.importer)

        try:
            importer = self.registry.get(org.importer)
            logger.info(f"Processing organization {name} ({org.importer})")
            events = await importer.import_events(org.url, name, org.options)
            report.fetched = len(events)

            report.sync = await self.reconciler.sync(name, events)
            # Prune only after a complete fetch; a failed fetch never reaches here.
            report.prune = await self.pruner.prune(name, events)
        except ImporterError as e:
            logger.error(f"Error processing {name}: {e.message}")
            report.error = e.message
        except StoreError as e:
            logger.error(f"Storage error processing {name}: {e.message}")
            report.error = e.message
        except Exception as e:
            logger.exception(f"Unexpected error processing {name}")
            report.error = str(e) or type(e).__name__

        return report

    async def run(
        self,
        organizations: Optional[Iterable[str]] = None,
        stop_event: Optional[asyncio.Event] = None,
    ) -> SyncRunReport:
        """Run one sync cycle.

        Args:
            organizations: Restrict the run to these organization names
            stop_event: When set, organizations that have not started yet are skipped

        Returns:
            Report with one entry per selected organization
        """
        names = self._selected_organizations(organizations)
        run_report = SyncRunReport()
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(name: str) -> OrganizationSyncReport:
            async with semaphore:
                if stop_event is not None and stop_event.is_set():
                    logger.info(f"Sync stopped before {name}")
                    return OrganizationSyncReport(organization=name, skipped=True)
                return await self.sync_organization(name)

        logger.info(f"Starting sync of {len(names)} organizations")
        run_report.organizations = list(await asyncio.gather(*(_bounded(name) for name in names)))
        run_report.cancelled = bool(stop_event is not None and stop_event.is_set())
        run_report.finished_at = datetime.now()

        failed = len(run_report.failed)
        logger.info(f"Sync finished: {len(names) - failed} organizations succeeded, {failed} failed")
        return run_report
