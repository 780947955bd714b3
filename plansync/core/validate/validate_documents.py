from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional, cast

from plansync.core.errors import PlanValidationError
from plansync.core.ids import normalize_id
from plansync.core.model import Experience, Plan, PlanItemInstance, PlanItemTemplate


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _optional_str(v: Any) -> bool:
    return v is None or isinstance(v, str)


def validate_experience(
    doc: dict[str, Any],
) -> tuple[Optional[Experience], list[PlanValidationError]]:
    """Validate an experience snapshot.

    Returns (experience, errors). Experience is None when errors exist.
    """

    file = cast(Optional[str], doc.get("__file__"))
    errors: list[PlanValidationError] = []

    items = doc.get("plan_items")
    if not isinstance(items, list):
        errors.append(
            PlanValidationError(
                code="E_REQUIRED_FIELD",
                message="plan_items is required and must be an array",
                file=file,
                path="plan_items",
            )
        )
        return None, _sorted(errors)

    out: list[PlanItemTemplate] = []
    seen: set[str] = set()
    for i, raw in enumerate(items):
        item_path = f"plan_items[{i}]"
        if not isinstance(raw, dict):
            errors.append(_err("E_INVALID_TYPE", "plan item must be an object", file, item_path))
            continue

        tid = normalize_id(raw.get("_id") if raw.get("_id") is not None else raw.get("id"))
        if tid is None:
            errors.append(
                _err("E_REQUIRED_FIELD", "_id (or id) is required and must be non-empty", file, f"{item_path}._id")
            )
            continue
        if tid in seen:
            errors.append(_err("E_DUPLICATE_ID", f"duplicate plan item id: {tid}", file, f"{item_path}._id"))
            continue
        seen.add(tid)

        text = raw.get("text")
        if not isinstance(text, str) or not text.strip():
            errors.append(
                _err("E_REQUIRED_FIELD", "text is required and must be a non-empty string", file, f"{item_path}.text")
            )
            continue

        item_errors = _check_common(raw, file, item_path, cost_field="cost_estimate")
        errors.extend(item_errors)
        if item_errors:
            continue

        out.append(
            PlanItemTemplate(
                id=tid,
                text=text,
                cost_estimate=raw.get("cost_estimate") or 0,
                planning_days=raw.get("planning_days") or 0,
                url=raw.get("url"),
                photo=normalize_id(raw.get("photo")),
                parent=normalize_id(raw.get("parent")),
            )
        )

    if errors:
        return None, _sorted(errors)

    return (
        Experience(
            plan_items=out,
            id=normalize_id(doc.get("_id")),
            name=doc.get("name") if isinstance(doc.get("name"), str) else None,
        ),
        [],
    )


def validate_plan(doc: dict[str, Any]) -> tuple[Optional[Plan], list[PlanValidationError]]:
    """Validate a plan snapshot.

    Returns (plan, errors). Plan is None when errors exist.
    """

    file = cast(Optional[str], doc.get("__file__"))
    errors: list[PlanValidationError] = []

    items = doc.get("plan")
    if not isinstance(items, list):
        errors.append(
            PlanValidationError(
                code="E_REQUIRED_FIELD",
                message="plan is required and must be an array",
                file=file,
                path="plan",
            )
        )
        return None, _sorted(errors)

    planned_date = doc.get("planned_date")
    # YAML reads unquoted dates as date/datetime.
    if isinstance(planned_date, date):
        planned_date = planned_date.isoformat()
    elif planned_date is not None and not isinstance(planned_date, str):
        errors.append(_err("E_INVALID_TYPE", "planned_date must be a date or string", file, "planned_date"))

    costs = doc.get("costs")
    if costs is not None and not isinstance(costs, list):
        errors.append(_err("E_INVALID_TYPE", "costs must be an array", file, "costs"))
        costs = None

    out: list[PlanItemInstance] = []
    seen: set[str] = set()
    for i, raw in enumerate(items):
        item_path = f"plan[{i}]"
        if not isinstance(raw, dict):
            errors.append(_err("E_INVALID_TYPE", "plan item must be an object", file, item_path))
            continue

        ref = normalize_id(raw.get("plan_item_id"))
        if ref is None:
            errors.append(
                _err("E_REQUIRED_FIELD", "plan_item_id is required and must be non-empty", file, f"{item_path}.plan_item_id")
            )
            continue

        own_id = normalize_id(raw.get("_id"))
        if own_id is not None:
            if own_id in seen:
                errors.append(_err("E_DUPLICATE_ID", f"duplicate plan item id: {own_id}", file, f"{item_path}._id"))
                continue
            seen.add(own_id)

        text = raw.get("text")
        if not _optional_str(text):
            errors.append(_err("E_INVALID_TYPE", "text must be a string", file, f"{item_path}.text"))
            continue

        complete = raw.get("complete")
        if complete is not None and not isinstance(complete, bool):
            errors.append(_err("E_INVALID_TYPE", "complete must be a boolean", file, f"{item_path}.complete"))
            continue

        item_errors = _check_common(raw, file, item_path, cost_field="cost")
        errors.extend(item_errors)
        if item_errors:
            continue

        out.append(
            PlanItemInstance(
                plan_item_id=ref,
                text=text or "",
                cost=raw.get("cost") or 0,
                planning_days=raw.get("planning_days") or 0,
                complete=bool(complete),
                id=own_id,
                url=raw.get("url"),
                photo=normalize_id(raw.get("photo")),
                parent=normalize_id(raw.get("parent")),
            )
        )

    if errors:
        return None, _sorted(errors)

    extra_costs: list[float] = []
    for c in costs or []:
        value = c.get("cost") if isinstance(c, dict) else c
        if _is_number(value):
            extra_costs.append(value)

    return (
        Plan(
            plan=out,
            id=normalize_id(doc.get("_id")),
            experience=normalize_id(doc.get("experience")),
            planned_date=planned_date,
            costs=extra_costs,
        ),
        [],
    )


def _check_common(
    raw: dict[str, Any], file: Optional[str], item_path: str, *, cost_field: str
) -> list[PlanValidationError]:
    errors: list[PlanValidationError] = []

    if not _optional_str(raw.get("url")):
        errors.append(_err("E_INVALID_TYPE", "url must be a string", file, f"{item_path}.url"))

    for name in (cost_field, "planning_days"):
        v = raw.get(name)
        if v is not None and not _is_number(v):
            errors.append(_err("E_INVALID_TYPE", f"{name} must be a number", file, f"{item_path}.{name}"))

    return errors


def _err(code: str, message: str, file: Optional[str], path: str) -> PlanValidationError:
    return PlanValidationError(code=code, message=message, file=file, path=path)


def _sorted(errors: Iterable[PlanValidationError]) -> list[PlanValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
