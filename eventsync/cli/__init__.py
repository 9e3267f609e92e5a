"""Command-line interface for eventsync."""

from typing import List, Optional

from ..utils.logging import setup_logging
from .config import load_settings
from .modes import run_export_mode, run_sync_mode
from .parser import create_parser


async def main_entry(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and run the selected command.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(settings)

    if args.command == "sync":
        return await run_sync_mode(args, settings)
    if args.command == "export":
        return await run_export_mode(args, settings)

    parser.error(f"Unknown command: {args.command}")
    return 2


__all__ = ["create_parser", "main_entry"]
