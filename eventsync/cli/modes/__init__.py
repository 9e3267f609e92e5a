"""Command handlers for the eventsync CLI."""

from .export import run_export_mode
from .sync import print_report, run_sync_mode

__all__ = ["print_report", "run_export_mode", "run_sync_mode"]
