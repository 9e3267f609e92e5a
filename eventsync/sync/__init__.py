"""Synchronization of fetched events into the store."""

from .manager import SyncManager
from .models import OrganizationSyncReport, PruneResult, SyncResult, SyncRunReport
from .pruner import EventPruner
from .reconciler import EventReconciler, has_significant_changes

__all__ = [
    "EventPruner",
    "EventReconciler",
    "OrganizationSyncReport",
    "PruneResult",
    "SyncManager",
    "SyncResult",
    "SyncRunReport",
    "has_significant_changes",
]
