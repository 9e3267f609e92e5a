"""Sync command handler."""

import asyncio
import logging
import signal
from typing import Any, Optional

from ...config.settings import EventSyncSettings
from ...ics.fetcher import FeedFetcher
from ...importers.registry import build_default_registry
from ...store.database import EventStore
from ...sync.manager import SyncManager
from ...sync.models import SyncRunReport

logger = logging.getLogger(__name__)


def print_report(report: SyncRunReport) -> None:
    """Print a per-organization summary of a sync run."""
    for org in report.organizations:
        if org.skipped:
            print(f"{org.organization}: skipped")
        elif org.error is not None:
            print(f"{org.organization}: FAILED ({org.error})")
        else:
            sync = org.sync
            pruned = org.prune.pruned if org.prune else 0
            line = (
                f"{org.organization}: {org.fetched} fetched, {sync.inserted} inserted, "
                f"{sync.updated} updated, {sync.unchanged} unchanged, {sync.stale} stale, "
                f"{pruned} pruned"
            )
            if sync.conflicts:
                line += f", {len(sync.conflicts)} conflicts"
            print(line)

    total = len(report.organizations)
    print(f"\n{total - len(report.failed)}/{total} organizations synced")


async def run_sync_mode(
    args: Any,
    settings: EventSyncSettings,
    transport: Optional[Any] = None,
) -> int:
    """Run one sync cycle.

    Args:
        args: Parsed command line arguments
        settings: Resolved settings
        transport: Optional httpx transport, used to stub the network in tests

    Returns:
        Exit code (0 for success, 1 if any organization failed)
    """
    if not settings.organizations:
        logger.error("No organizations configured")
        return 1

    stop_event = asyncio.Event()

    def signal_handler(signum: int, _frame: Any) -> None:
        """Stop starting new organizations; running ones finish."""
        logger.warning(f"Received signal {signum}, stopping after running organizations")
        stop_event.set()

    previous_handlers = {sig: signal.signal(sig, signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)}

    try:
        store = EventStore(settings.database_file)
        async with FeedFetcher(settings, transport=transport) as fetcher:
            registry = build_default_registry(fetcher, settings)
            manager = SyncManager(settings, store, registry)
            report = await manager.run(getattr(args, "organizations", None), stop_event)
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    print_report(report)
    return 0 if report.success else 1
