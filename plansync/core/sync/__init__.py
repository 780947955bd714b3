"""Plan/experience divergence detection and selective sync.

Both entry points are pure: has_diverged() runs on every snapshot change,
compute_changeset()/apply_changeset() run when the user asks to sync.
"""
from plansync.core.sync.changeset import apply_changeset, compute_changeset, parse_selection
from plansync.core.sync.contracts import (
    AddedItem,
    Changeset,
    FieldModification,
    ModifiedItem,
    RemovedItem,
    SyncSelection,
)
from plansync.core.sync.divergence import has_diverged
from plansync.core.sync.sync_plan import SyncResult, sync_plan
from plansync.core.sync.versioning import OfferResult, VersionGate

__all__ = [
    "AddedItem",
    "Changeset",
    "FieldModification",
    "ModifiedItem",
    "OfferResult",
    "RemovedItem",
    "SyncResult",
    "SyncSelection",
    "VersionGate",
    "apply_changeset",
    "compute_changeset",
    "has_diverged",
    "parse_selection",
    "sync_plan",
]
