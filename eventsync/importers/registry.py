"""Registry mapping source-type names to importers."""

import logging
from typing import Any, Dict, List

from ..ics.fetcher import FeedFetcher
from ..ics.field_mapper import DEFAULT_TIMEZONE
from .action_network import ActionNetworkImporter
from .base import Importer
from .dallas_bicycle_coalition import DallasBicycleCoalitionImporter
from .exceptions import UnknownImporterError
from .ics_importer import ICSImporter

logger = logging.getLogger(__name__)


class ImporterRegistry:
    """Explicit name to importer table, built once and passed to the sync driver."""

    def __init__(self) -> None:
        self._importers: Dict[str, Importer] = {}

    def register(self, name: str, importer: Importer) -> None:
        """Register an importer, replacing any previous one with that name."""
        if name in self._importers:
            logger.warning(f"Replacing importer registered as {name!r}")
        self._importers[name] = importer
        logger.debug(f"Registered importer {name!r}")

    def get(self, name: str) -> Importer:
        """Look up an importer.

        Raises:
            UnknownImporterError: Nothing is registered under ``name``
        """
        try:
            return self._importers[name]
        except KeyError:
            raise UnknownImporterError(f"Unknown importer: {name!r}") from None

    def names(self) -> List[str]:
        """Registered importer names, sorted."""
        return sorted(self._importers)

    def __contains__(self, name: object) -> bool:
        return name in self._importers

    def __len__(self) -> int:
        return len(self._importers)


def build_default_registry(fetcher: FeedFetcher, settings: Any = None) -> ImporterRegistry:
    """Registry with the built-in importers, sharing one fetcher."""
    default_timezone = getattr(settings, "default_timezone", None) or DEFAULT_TIMEZONE

    registry = ImporterRegistry()
    for importer_class in (ICSImporter, ActionNetworkImporter, DallasBicycleCoalitionImporter):
        registry.register(importer_class.name, importer_class(fetcher, default_timezone))
    return registry
