"""Settings resolution for command-line runs."""

from typing import Any

from ..config.settings import EventSyncSettings, get_settings
from ..utils.logging import apply_command_line_overrides


def load_settings(args: Any) -> EventSyncSettings:
    """Settings for this run with command-line overrides applied.

    Priority: Command-line > Environment > YAML > Defaults.
    """
    config_file = getattr(args, "config", None)
    settings = EventSyncSettings(config_file=config_file) if config_file else get_settings()

    if getattr(args, "database", None):
        settings.database_path = args.database
    if getattr(args, "concurrency", None):
        settings.sync_concurrency = args.concurrency

    return apply_command_line_overrides(settings, args)
