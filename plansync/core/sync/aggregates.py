from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class PlanAggregates:
    total_cost: float
    completion_percentage: int
    max_days: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_cost": self.total_cost,
            "completion_percentage": self.completion_percentage,
            "max_days": self.max_days,
        }


def plan_aggregates(items: list[Any], costs: Optional[list[Any]] = None) -> PlanAggregates:
    """Recompute the read-model fields the backend derives from a plan's items.

    costs are plan-level extra cost entries (``{"cost": n}`` or plain numbers).
    """

    dict_items = [i for i in items if isinstance(i, dict)]

    total = sum(_num(i.get("cost")) for i in dict_items)
    for c in costs or []:
        total += _num(c.get("cost")) if isinstance(c, dict) else _num(c)

    max_days = max((_num(i.get("planning_days")) for i in dict_items), default=0)

    if not dict_items:
        pct = 0
    else:
        done = sum(1 for i in dict_items if i.get("complete"))
        pct = _round_half_up(done / len(dict_items) * 100)

    return PlanAggregates(total_cost=total, completion_percentage=pct, max_days=max_days)


def _num(v: Any) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return 0
    return v


def _round_half_up(x: float) -> int:
    # round() uses banker's rounding; completion percentages round .5 upward.
    return int(x + 0.5)
