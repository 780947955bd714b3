from __future__ import annotations

from typing import Any

from loguru import logger

from plansync.core.ids import instance_ref
from plansync.core.sync.compare import find_template, has_item_list, index_templates, items_match


def has_diverged(plan: Any, experience: Any) -> bool:
    """Report whether a plan has drifted from its source experience.

    Missing or malformed documents count as "not diverged" so callers never
    prompt a sync before both snapshots are loaded.

    The scan is driven by the plan's instances: a count mismatch short-circuits,
    then every instance must resolve to a template with equal watched fields.
    A template added alongside an unrelated removal is caught through the
    orphaned instance, not through a symmetric set comparison.
    """

    if not has_item_list(plan, "plan") or not has_item_list(experience, "plan_items"):
        return False

    instances: list[Any] = plan["plan"]
    templates: list[Any] = experience["plan_items"]

    diverged = _scan(instances, templates)
    logger.debug(
        "divergence check plan_items={} experience_items={} diverged={}",
        len(instances),
        len(templates),
        diverged,
    )
    return diverged


def _scan(instances: list[Any], templates: list[Any]) -> bool:
    if len(instances) != len(templates):
        return True

    by_id = index_templates(templates)
    for raw in instances:
        if not isinstance(raw, dict):
            return True
        template = find_template(by_id, instance_ref(raw))
        if template is None:
            return True
        if not items_match(template, raw):
            return True
    return False
