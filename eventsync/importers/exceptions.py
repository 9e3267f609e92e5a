"""Importer-specific exceptions."""

from typing import Optional


class ImporterError(Exception):
    """Base exception for importer errors."""

    def __init__(self, message: str, organization: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.organization = organization


class ImporterConfigError(ImporterError):
    """Exception raised when an organization's importer options are invalid."""


class ImporterFetchError(ImporterError):
    """Exception raised when the upstream document could not be downloaded."""


class ImporterDataError(ImporterError):
    """Exception raised when upstream data is malformed."""


class UnknownImporterError(ImporterConfigError):
    """Exception raised when no importer is registered under a name."""
