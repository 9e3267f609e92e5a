"""Configuration management package."""

from .settings import (
    EventSyncSettings,
    LoggingSettings,
    OrganizationConfig,
    get_settings,
    load_env_organizations,
    reset_settings,
)

__all__ = [
    "EventSyncSettings",
    "LoggingSettings",
    "OrganizationConfig",
    "get_settings",
    "load_env_organizations",
    "reset_settings",
]
