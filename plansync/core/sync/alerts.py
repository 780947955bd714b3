"""Persistent "plan out of sync" alert dismissals.

A dismissal (or a completed sync) hides the alert for one plan for a fixed
window. State lives in a small YAML file: ``dismissed: {plan_id: epoch_seconds}``.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from loguru import logger

from plansync.core.errors import PlanLoadError
from plansync.core.ids import normalize_id
from plansync.core.sync.divergence import has_diverged


DEFAULT_DISMISS_DAYS = 7


@dataclass(frozen=True)
class SyncStatus:
    diverged: bool
    show_alert: bool

    def to_dict(self) -> dict[str, Any]:
        return {"diverged": self.diverged, "show_alert": self.show_alert}


class AlertDismissals:
    def __init__(self, dismissed: Optional[dict[str, float]] = None, *, days: float = DEFAULT_DISMISS_DAYS) -> None:
        self._dismissed: dict[str, float] = dict(dismissed or {})
        self.duration_s = days * 24 * 60 * 60

    @classmethod
    def load(cls, path: str | Path, *, days: float = DEFAULT_DISMISS_DAYS) -> "AlertDismissals":
        p = Path(path)
        if not p.exists():
            return cls(days=days)
        try:
            raw = yaml.safe_load(p.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise PlanLoadError(code="E_STATE_PARSE", message=str(e), file=str(p)) from e

        if raw is None:
            return cls(days=days)
        dismissed = raw.get("dismissed") if isinstance(raw, dict) else None
        if not isinstance(dismissed, dict):
            raise PlanLoadError(
                code="E_STATE_INVALID",
                message="state file must be a mapping with a 'dismissed' mapping",
                file=str(p),
            )

        out: dict[str, float] = {}
        for k, v in dismissed.items():
            key = normalize_id(k)
            if key is None or isinstance(v, bool) or not isinstance(v, (int, float)):
                logger.warning("ignoring malformed dismissal entry {!r}: {!r}", k, v)
                continue
            out[key] = float(v)
        return cls(out, days=days)

    def save(self, path: str | Path, *, now: Optional[float] = None) -> None:
        self.prune(now)
        p = Path(path)
        if str(p.parent) not in (".", ""):
            p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, "w", encoding="utf-8") as f:
            yaml.safe_dump({"dismissed": dict(sorted(self._dismissed.items()))}, f, sort_keys=False)

    def dismiss(self, plan_id: Any, *, now: Optional[float] = None) -> None:
        key = normalize_id(plan_id)
        if key is None:
            raise ValueError("plan id is required to dismiss an alert")
        self._dismissed[key] = _now(now)

    def is_dismissed(self, plan_id: Any, *, now: Optional[float] = None) -> bool:
        key = normalize_id(plan_id)
        if key is None:
            return False
        at = self._dismissed.get(key)
        if at is None:
            return False
        return _now(now) - at < self.duration_s

    def prune(self, now: Optional[float] = None) -> None:
        t = _now(now)
        self._dismissed = {k: v for k, v in self._dismissed.items() if t - v < self.duration_s}

    def entries(self) -> dict[str, float]:
        return dict(self._dismissed)


def sync_status(
    plan: Any,
    experience: Any,
    dismissals: Optional[AlertDismissals] = None,
    *,
    now: Optional[float] = None,
) -> SyncStatus:
    """Divergence plus whether the out-of-sync alert should be shown."""

    diverged = has_diverged(plan, experience)
    if not diverged:
        return SyncStatus(diverged=False, show_alert=False)

    plan_id = plan.get("_id") if isinstance(plan, dict) else None
    hidden = dismissals is not None and dismissals.is_dismissed(plan_id, now=now)
    return SyncStatus(diverged=True, show_alert=not hidden)


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now
