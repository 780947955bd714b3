from __future__ import annotations

from typing import Any, Optional


def normalize_id(value: Any) -> Optional[str]:
    """Return the canonical string form of an entity id, or None.

    Accepts plain strings and ints, Mongo extended JSON (``{"$oid": "..."}``),
    mappings/objects carrying an ``_id``, and anything else with a useful ``str()``.
    """

    if value is None or value is False:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, dict):
        if "$oid" in value:
            return normalize_id(value["$oid"])
        if "_id" in value:
            return normalize_id(value["_id"])
        return None

    nested = getattr(value, "_id", None)
    if nested is not None and nested is not value:
        return normalize_id(nested)

    text = str(value)
    return text or None


def id_equals(a: Any, b: Any) -> bool:
    na = normalize_id(a)
    nb = normalize_id(b)
    if na is None or nb is None:
        return False
    return na == nb


def template_id(item: Any) -> Optional[str]:
    """Id of an experience plan item (``_id``, falling back to ``id``)."""
    if not isinstance(item, dict):
        return None
    raw = item.get("_id")
    if raw is None:
        raw = item.get("id")
    return normalize_id(raw)


def instance_ref(item: Any) -> Optional[str]:
    """Template id a plan item instance points at."""
    if not isinstance(item, dict):
        return None
    return normalize_id(item.get("plan_item_id"))


def item_key(item: Any) -> Optional[str]:
    """Identity used for hierarchy lookups: ``_id``/``id``, else ``plan_item_id``."""
    return template_id(item) or instance_ref(item)
