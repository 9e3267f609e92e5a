"""Source importers turning upstream feeds into canonical events."""

from .action_network import ActionNetworkImporter
from .base import Importer
from .dallas_bicycle_coalition import DallasBicycleCoalitionImporter
from .exceptions import (
    ImporterConfigError,
    ImporterDataError,
    ImporterError,
    ImporterFetchError,
    UnknownImporterError,
)
from .ics_importer import ICSImporter
from .registry import ImporterRegistry, build_default_registry

__all__ = [
    "ActionNetworkImporter",
    "DallasBicycleCoalitionImporter",
    "ICSImporter",
    "Importer",
    "ImporterConfigError",
    "ImporterDataError",
    "ImporterError",
    "ImporterFetchError",
    "ImporterRegistry",
    "UnknownImporterError",
    "build_default_registry",
]
