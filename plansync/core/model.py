from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional


DocumentKind = Literal["plan", "experience"]


@dataclass(frozen=True)
class PlanItemTemplate:
    id: str
    text: str
    cost_estimate: float = 0
    planning_days: float = 0

    url: Optional[str] = None
    photo: Optional[str] = None
    parent: Optional[str] = None


@dataclass(frozen=True)
class PlanItemInstance:
    plan_item_id: str
    text: str
    cost: float = 0
    planning_days: float = 0
    complete: bool = False

    id: Optional[str] = None
    url: Optional[str] = None
    photo: Optional[str] = None
    parent: Optional[str] = None


@dataclass(frozen=True)
class Experience:
    plan_items: list[PlanItemTemplate]
    id: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class Plan:
    plan: list[PlanItemInstance]
    id: Optional[str] = None
    experience: Optional[str] = None
    planned_date: Optional[str] = None
    costs: list[float] = field(default_factory=list)
