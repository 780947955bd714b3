from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from plansync.core.sync.aggregates import plan_aggregates
from plansync.core.sync.changeset import SelectionLike, apply_changeset, coerce_selection, compute_changeset
from plansync.core.sync.contracts import Changeset


@dataclass(frozen=True)
class SyncResult:
    source: dict[str, Any]
    changeset: Changeset
    plan_items: list[dict[str, Any]]
    applied: dict[str, int]

    def updated_plan(self) -> dict[str, Any]:
        """Copy of the source plan document carrying the merged items and fresh aggregates."""
        doc = {k: v for k, v in self.source.items() if k != "__file__"}
        doc["plan"] = self.plan_items
        costs = doc.get("costs") if isinstance(doc.get("costs"), list) else None
        doc.update(plan_aggregates(self.plan_items, costs).to_dict())
        return doc


def sync_plan(plan: Any, experience: Any, selection: Optional[SelectionLike] = None) -> SyncResult:
    """Compute the changeset and apply the selection (default: every change)."""

    changeset = compute_changeset(plan, experience)
    items = apply_changeset(plan, changeset, selection, experience=experience)

    applied = coerce_selection(selection, changeset).counts()

    return SyncResult(source=plan, changeset=changeset, plan_items=items, applied=applied)
