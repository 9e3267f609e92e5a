"""Command-line argument parsing for eventsync."""

import argparse
from pathlib import Path

from .. import __version__

LOG_LEVELS = ["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create the command line argument parser.

    Returns:
        Parser with ``sync`` and ``export`` subcommands
    """
    parser = argparse.ArgumentParser(
        prog="eventsync",
        description="eventsync - aggregate community event feeds into one moderated calendar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sync                                  # Sync every enabled organization
  %(prog)s sync --organization "Dallas Urbanists" # Sync one organization
  %(prog)s export --output events.ics            # Write approved events as ICS
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, metavar="PATH", help="YAML configuration file")
    parser.add_argument("--database", type=Path, metavar="PATH", help="SQLite database file")

    logging_group = parser.add_argument_group("logging", "Logging configuration options")
    logging_group.add_argument("--log-level", choices=LOG_LEVELS, help="Set both console and file log levels")
    logging_group.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging (console level VERBOSE)"
    )
    logging_group.add_argument(
        "--quiet", "-q", action="store_true", help="Only show errors on console (sets console level to ERROR)"
    )
    logging_group.add_argument("--log-dir", type=Path, help="Write log files to this directory")
    logging_group.add_argument("--no-log-colors", action="store_true", help="Disable colored console output")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    sync_parser = subparsers.add_parser("sync", help="Fetch every organization and update the store")
    sync_parser.add_argument(
        "--organization",
        action="append",
        dest="organizations",
        metavar="NAME",
        help="Only sync this organization (repeatable)",
    )
    sync_parser.add_argument(
        "--concurrency", type=_positive_int, metavar="N", help="Organizations synced at once"
    )

    export_parser = subparsers.add_parser("export", help="Write stored events as an ICS document")
    export_parser.add_argument(
        "--output", "-o", type=Path, metavar="PATH", help="Output file (default: standard output)"
    )
    export_parser.add_argument(
        "--include-rejected", action="store_true", help="Also export events rejected by moderation"
    )
    export_parser.add_argument("--organization", metavar="NAME", help="Only export this organization's events")

    return parser
