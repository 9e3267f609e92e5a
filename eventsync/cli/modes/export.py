"""Export command handler."""

import logging
import sys
from typing import Any

from ...config.settings import EventSyncSettings
from ...ics.writer import build_calendar
from ...store.database import EventStore

logger = logging.getLogger(__name__)


async def run_export_mode(args: Any, settings: EventSyncSettings) -> int:
    """Write stored events as an ICS document.

    Args:
        args: Parsed command line arguments
        settings: Resolved settings

    Returns:
        Exit code
    """
    store = EventStore(settings.database_file)
    include_rejected = getattr(args, "include_rejected", False)
    events = await store.list_events(
        organization=getattr(args, "organization", None),
        include_rejected=include_rejected,
    )

    document = build_calendar(events, settings.default_timezone, include_rejected=include_rejected)

    output = getattr(args, "output", None)
    if output is None:
        sys.stdout.buffer.write(document)
        sys.stdout.flush()
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(document)
        logger.info(f"Wrote {len(events)} events to {output}")
    return 0
