"""Result models for synchronization runs."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SyncResult(BaseModel):
    """Outcome of reconciling one organization's fetched events."""

    organization: str
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    stale: int = 0
    reset: int = 0
    skipped: int = 0
    conflicts: List[str] = Field(default_factory=list, description="Identities that lost a write race")


class PruneResult(BaseModel):
    """Outcome of removing events an organization no longer publishes."""

    organization: str
    pruned: int = 0
    errors: List[str] = Field(default_factory=list)


class OrganizationSyncReport(BaseModel):
    """Per-organization summary of one sync run."""

    organization: str
    importer: str = ""
    fetched: int = 0
    sync: Optional[SyncResult] = None
    prune: Optional[PruneResult] = None
    error: Optional[str] = None
    skipped: bool = False

    @property
    def success(self) -> bool:
        """True when the organization was fetched and reconciled."""
        return self.error is None and not self.skipped


class SyncRunReport(BaseModel):
    """Summary of one sync run across organizations."""

    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    organizations: List[OrganizationSyncReport] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def failed(self) -> List[OrganizationSyncReport]:
        """Organizations whose pipeline failed."""
        return [report for report in self.organizations if report.error is not None]

    @property
    def success(self) -> bool:
        return not self.failed
