"""Comparison primitives shared by the divergence detector and the merger.

Watched fields are compared after normalizing falsy values, so that a missing
url and an empty url (or a missing cost and a cost of 0) never count as drift.
"""
from __future__ import annotations

from typing import Any, Optional

from plansync.core.ids import instance_ref, template_id


# (report name, template field, instance field, kind)
WATCHED_FIELDS: list[tuple[str, str, str, str]] = [
    ("text", "text", "text", "str"),
    ("url", "url", "url", "str"),
    ("cost", "cost_estimate", "cost", "num"),
    ("days", "planning_days", "planning_days", "num"),
]

# Fields copied from the template onto an instance when a modification is applied.
SYNCED_FIELDS: tuple[str, ...] = ("text", "url", "planning_days", "photo", "parent")


def norm_str(v: Any) -> Any:
    return v if v else ""


def norm_num(v: Any) -> Any:
    return v if v else 0


def _norm(kind: str, v: Any) -> Any:
    return norm_num(v) if kind == "num" else norm_str(v)


def field_differs(kind: str, template_value: Any, instance_value: Any) -> bool:
    return _norm(kind, template_value) != _norm(kind, instance_value)


def items_match(template: dict[str, Any], instance: dict[str, Any]) -> bool:
    """True when none of the watched fields differ."""
    for _, t_field, i_field, kind in WATCHED_FIELDS:
        if field_differs(kind, template.get(t_field), instance.get(i_field)):
            return False
    return True


def has_item_list(doc: Any, key: str) -> bool:
    return isinstance(doc, dict) and isinstance(doc.get(key), list)


def index_templates(items: list[Any]) -> dict[str, dict[str, Any]]:
    """Canonical id -> template item. First occurrence wins on duplicates."""
    out: dict[str, dict[str, Any]] = {}
    for raw in items:
        tid = template_id(raw)
        if tid is not None and tid not in out:
            out[tid] = raw
    return out


def index_instances(items: list[Any]) -> dict[str, dict[str, Any]]:
    """Referenced template id -> instance. First occurrence wins on duplicates."""
    out: dict[str, dict[str, Any]] = {}
    for raw in items:
        ref = instance_ref(raw)
        if ref is not None and ref not in out:
            out[ref] = raw
    return out


def find_template(index: dict[str, dict[str, Any]], ref: Optional[str]) -> Optional[dict[str, Any]]:
    if ref is None:
        return None
    return index.get(ref)
