"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "EVENTSYNC_"

# Organizations can be declared entirely through the environment:
# CONFIG_ORGANIZATIONS_DALLAS_URBANISTS_URL / _IMPORTER / _API_KEY
ORG_ENV_PREFIX = "CONFIG_ORGANIZATIONS_"
ORG_ENV_SUFFIXES = {"_URL": "url", "_IMPORTER": "importer", "_API_KEY": "api_key"}


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    # Console Logging
    console_enabled: bool = Field(default=True, description="Enable console logging")
    console_level: str = Field(
        default="INFO",
        description="Console log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    console_colors: bool = Field(default=True, description="Enable colored console output (auto-detected)")

    # File Logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_level: str = Field(
        default="DEBUG",
        description="File log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    file_directory: Optional[str] = Field(default=None, description="Custom log directory (defaults to data_dir/logs)")
    file_prefix: str = Field(default="eventsync", description="Log file prefix")
    max_log_files: int = Field(default=5, description="Maximum number of log files to keep")
    include_function_names: bool = Field(
        default=True, description="Include function names and line numbers in file logs"
    )

    # Third-party Libraries
    third_party_level: str = Field(default="WARNING", description="Log level for third-party libraries")


class OrganizationConfig(BaseModel):
    """One upstream source of events."""

    url: str = Field(default="", description="Source endpoint")
    importer: str = Field(default="ical", description="Registered importer name")
    options: Dict[str, Any] = Field(default_factory=dict, description="Importer-specific options")
    enabled: bool = Field(default=True, description="Whether the organization is synced")


def organization_name_from_env(key: str) -> str:
    """``DALLAS_URBANISTS`` becomes ``Dallas Urbanists``."""
    return key.replace("_", " ").title()


def load_env_organizations(environ: Optional[Mapping[str, str]] = None) -> Dict[str, OrganizationConfig]:
    """Collect organizations declared through ``CONFIG_ORGANIZATIONS_*`` variables.

    An organization is only returned once both its URL and importer are set.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Organizations keyed by display name
    """
    environ = os.environ if environ is None else environ
    partial: Dict[str, Dict[str, str]] = {}

    for key, value in environ.items():
        if not key.startswith(ORG_ENV_PREFIX):
            continue
        remainder = key[len(ORG_ENV_PREFIX) :]
        for suffix, attribute in ORG_ENV_SUFFIXES.items():
            if remainder.endswith(suffix) and len(remainder) > len(suffix):
                name = organization_name_from_env(remainder[: -len(suffix)])
                partial.setdefault(name, {})[attribute] = value
                break

    organizations: Dict[str, OrganizationConfig] = {}
    for name, values in partial.items():
        if not values.get("url") or not values.get("importer"):
            logger.debug(f"Ignoring incomplete environment organization {name!r}")
            continue
        options = {"api_key": values["api_key"]} if values.get("api_key") else {}
        organizations[name] = OrganizationConfig(url=values["url"], importer=values["importer"], options=options)

    return organizations


class EventSyncSettings(BaseSettings):
    """Application settings with environment variable support."""

    # Private attributes
    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)
    _config_path: Optional[Path] = PrivateAttr(default=None)

    # Sources
    organizations: Dict[str, OrganizationConfig] = Field(
        default_factory=dict, description="Organizations keyed by name"
    )

    # Time handling
    default_timezone: str = Field(
        default="America/Chicago", description="Zone applied to floating local times"
    )

    # Network Settings
    request_timeout: int = Field(default=30, description="HTTP request timeout in seconds")
    user_agent: Optional[str] = Field(default=None, description="User-Agent sent with feed requests")
    block_private_networks: bool = Field(
        default=True, description="Refuse feed URLs pointing at localhost or private networks"
    )

    # Sync Settings
    sync_concurrency: int = Field(default=4, ge=1, description="Organizations synced at once")

    # Storage
    database_path: Optional[Path] = Field(default=None, description="SQLite database file")

    # Application Settings
    app_name: str = Field(default="eventsync", description="Application name")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "eventsync")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local" / "share" / "eventsync")

    # Logging Settings
    logging: LoggingSettings = Field(default_factory=LoggingSettings, description="Logging settings")

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, config_file: Optional[Union[Path, str]] = None, **kwargs: Any) -> None:
        """Build settings from arguments, environment and YAML, in that precedence.

        Args:
            config_file: Explicit YAML file; searched for when omitted
            **kwargs: Explicit setting values
        """
        env_vars_set = {key[len(ENV_PREFIX) :].lower() for key in os.environ if key.startswith(ENV_PREFIX)}

        super().__init__(**kwargs)

        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = env_vars_set
        self._config_path = Path(config_file) if config_file is not None else None

        self._load_yaml_config()
        self._load_env_organizations()

    def _find_config_file(self) -> Optional[Path]:
        """Find config file, checking an explicit path, the project directory, then user home."""
        if self._config_path is not None:
            if not self._config_path.exists():
                raise ValueError(f"Config file not found: {self._config_path}")
            return self._config_path

        project_root = Path(__file__).parent.parent.parent
        project_config = project_root / "config" / "config.yaml"
        if project_config.exists():
            return project_config

        user_config = self.config_dir / "config.yaml"
        if user_config.exists():
            return user_config

        return None

    def _can_override(self, setting: str) -> bool:
        return setting not in self._explicit_args and setting not in self._env_vars_set

    def _load_basic_settings(self, config_data: dict) -> None:
        """Load scalar settings from YAML data."""
        basic_settings = [
            "default_timezone",
            "request_timeout",
            "user_agent",
            "block_private_networks",
            "sync_concurrency",
            "database_path",
        ]

        for setting in basic_settings:
            if setting in config_data and self._can_override(setting):
                value = config_data[setting]
                if setting == "database_path" and value is not None:
                    value = Path(value).expanduser()
                setattr(self, setting, value)

    def _load_organizations(self, config_data: dict) -> None:
        """Load organizations from YAML data."""
        organizations = config_data.get("organizations")
        if not organizations or not self._can_override("organizations"):
            return

        for name, org_config in organizations.items():
            if isinstance(org_config, str):
                # Shorthand: "Name: https://example.org/feed.ics"
                org_config = {"url": org_config}
            self.organizations[str(name)] = OrganizationConfig(**org_config)

    def _load_logging_config(self, config_data: dict) -> None:
        """Load logging configuration from YAML data."""
        if "logging" not in config_data:
            return

        logging_config = config_data["logging"] or {}
        for setting in LoggingSettings.model_fields:
            if setting in logging_config:
                setattr(self.logging, setting, logging_config[setting])

        # Shorthand for setting both levels
        if "level" in logging_config:
            self.logging.console_level = logging_config["level"]
            self.logging.file_level = logging_config["level"]

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self._find_config_file()
        if not config_file:
            return

        try:
            with config_file.open() as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            # Continue with defaults/env vars if the file is unreadable
            logger.warning(f"Could not load YAML config from {config_file}: {e}")
            return

        if not config_data:
            return

        self._load_basic_settings(config_data)
        self._load_organizations(config_data)
        self._load_logging_config(config_data)
        logger.debug(f"Loaded configuration from {config_file}")

    def _load_env_organizations(self) -> None:
        """Environment-declared organizations override YAML ones of the same name."""
        for name, org in load_env_organizations().items():
            self.organizations[name] = org

    @property
    def database_file(self) -> Path:
        """Path to SQLite database file."""
        return self.database_path or self.data_dir / "events.db"

    @property
    def config_path(self) -> Optional[Path]:
        """Explicit configuration file, if one was given."""
        return self._config_path


# Global settings management
_settings_instance: Optional[EventSyncSettings] = None


def get_settings() -> EventSyncSettings:
    """Get the global settings instance, creating it lazily if needed."""
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = EventSyncSettings()
    return globals()["_settings_instance"]


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
