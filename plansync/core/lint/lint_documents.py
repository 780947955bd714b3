from __future__ import annotations

from collections import Counter
from typing import Any, Callable, Optional

from plansync.core.errors import PlanValidationError
from plansync.core.ids import instance_ref, normalize_id, template_id


# Lint rules for plan/experience snapshots:
# - L_DUPLICATE_ID: two experience items share an id
# - L_DUPLICATE_PLAN_ITEM_REF: two plan items reference the same experience item
# - L_UNKNOWN_PARENT: parent references an id not present in the same document
# - L_NESTED_TOO_DEEP: child of a child (hierarchy is one level deep by convention)
# - L_NEGATIVE_VALUE: negative cost, cost_estimate or planning_days


def lint_documents(
    plan: Optional[dict[str, Any]] = None,
    experience: Optional[dict[str, Any]] = None,
) -> list[PlanValidationError]:
    """Lint plan and/or experience snapshots.

    Lint runs *in addition to* validation and is best effort on
    partially-invalid inputs. Malformed item lists are left to the validator.
    """

    errors: list[PlanValidationError] = []

    if isinstance(experience, dict) and isinstance(experience.get("plan_items"), list):
        errors.extend(
            _lint_items(
                experience["plan_items"],
                file=_file(experience),
                list_path="plan_items",
                numeric_fields=("cost_estimate", "planning_days"),
                key_fn=template_id,
                dup_code="L_DUPLICATE_ID",
                dup_label="duplicate plan item id",
            )
        )

    if isinstance(plan, dict) and isinstance(plan.get("plan"), list):
        errors.extend(
            _lint_items(
                plan["plan"],
                file=_file(plan),
                list_path="plan",
                numeric_fields=("cost", "planning_days"),
                key_fn=instance_ref,
                dup_code="L_DUPLICATE_PLAN_ITEM_REF",
                dup_label="plan_item_id referenced more than once",
            )
        )

    return _sorted(errors)


def _lint_items(
    items: list[Any],
    *,
    file: Optional[str],
    list_path: str,
    numeric_fields: tuple[str, ...],
    key_fn: Callable[[Any], Optional[str]],
    dup_code: str,
    dup_label: str,
) -> list[PlanValidationError]:
    errors: list[PlanValidationError] = []

    keys = [key_fn(raw) for raw in items]
    counts = Counter(k for k in keys if k is not None)
    seen: set[str] = set()
    for i, k in enumerate(keys):
        if k is None or counts[k] < 2:
            continue
        if k not in seen:
            seen.add(k)
            continue
        errors.append(
            PlanValidationError(
                code=dup_code,
                message=f"{dup_label}: {k} (count={counts[k]})",
                file=file,
                path=f"{list_path}[{i}]",
            )
        )

    # Children may point at either id a plan item carries.
    parent_of: dict[str, Optional[str]] = {}
    for raw in items:
        if not isinstance(raw, dict):
            continue
        parent = normalize_id(raw.get("parent"))
        for k in (template_id(raw), instance_ref(raw)):
            if k is not None:
                parent_of.setdefault(k, parent)

    for i, raw in enumerate(items):
        if not isinstance(raw, dict):
            continue

        parent = normalize_id(raw.get("parent"))
        if parent is not None:
            if parent not in parent_of:
                errors.append(
                    PlanValidationError(
                        code="L_UNKNOWN_PARENT",
                        message=f"parent references unknown item: {parent}",
                        file=file,
                        path=f"{list_path}[{i}].parent",
                    )
                )
            elif parent_of[parent] is not None:
                errors.append(
                    PlanValidationError(
                        code="L_NESTED_TOO_DEEP",
                        message=f"parent {parent} is itself a child of {parent_of[parent]}",
                        file=file,
                        path=f"{list_path}[{i}].parent",
                    )
                )

        for name in numeric_fields:
            v = raw.get(name)
            if isinstance(v, (int, float)) and not isinstance(v, bool) and v < 0:
                errors.append(
                    PlanValidationError(
                        code="L_NEGATIVE_VALUE",
                        message=f"{name} must not be negative (got {v})",
                        file=file,
                        path=f"{list_path}[{i}].{name}",
                    )
                )

    return errors


def _file(doc: dict[str, Any]) -> Optional[str]:
    v = doc.get("__file__")
    return v if isinstance(v, str) else None


def _sorted(errors: list[PlanValidationError]) -> list[PlanValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
