"""Three-way sync between a plan and its source experience.

compute_changeset() is pure and reports what drifted; apply_changeset() takes a
user selection of that changeset and returns a new plan item list. Neither
touches the network: persisting the result is the caller's job.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from loguru import logger

from plansync.core.errors import InvalidInputError, SelectionError
from plansync.core.ids import instance_ref, template_id
from plansync.core.sync.compare import (
    SYNCED_FIELDS,
    WATCHED_FIELDS,
    field_differs,
    has_item_list,
    index_instances,
    index_templates,
    norm_num,
)
from plansync.core.sync.contracts import (
    AddedItem,
    Changeset,
    FieldModification,
    ModifiedItem,
    RemovedItem,
    SyncSelection,
)


SelectionLike = Union[SyncSelection, Mapping[str, Any]]

# Modification field name -> instance field it writes to.
_MOD_TARGETS: dict[str, str] = {"text": "text", "url": "url", "cost": "cost", "days": "planning_days"}


def compute_changeset(plan: Any, experience: Any) -> Changeset:
    """Compute added/removed/modified items between an experience and a plan."""

    _require_items(plan, experience)
    instances: list[Any] = plan["plan"]
    templates: list[Any] = experience["plan_items"]

    by_template = index_templates(templates)
    by_ref = index_instances(instances)

    added: list[AddedItem] = []
    modified: list[ModifiedItem] = []
    for raw in templates:
        tid = template_id(raw)
        if tid is None:
            continue
        instance = by_ref.get(tid)
        if instance is None:
            added.append(
                AddedItem(
                    id=tid,
                    text=raw.get("text"),
                    url=raw.get("url"),
                    cost=norm_num(raw.get("cost_estimate")),
                    planning_days=norm_num(raw.get("planning_days")),
                    photo=raw.get("photo"),
                    parent=raw.get("parent"),
                )
            )
            continue

        mods = _field_modifications(raw, instance)
        if mods:
            modified.append(ModifiedItem(id=tid, text=raw.get("text"), modifications=mods))

    removed: list[RemovedItem] = []
    for raw in instances:
        if not isinstance(raw, dict):
            continue
        ref = instance_ref(raw)
        if ref is None or ref not in by_template:
            removed.append(RemovedItem(id=ref, text=raw.get("text"), url=raw.get("url")))

    changeset = Changeset(added=added, removed=removed, modified=modified)
    logger.debug("computed changeset {}", changeset.counts())
    return changeset


def apply_changeset(
    plan: Any,
    changeset: Changeset,
    selection: Optional[SelectionLike] = None,
    *,
    experience: Any = None,
) -> list[dict[str, Any]]:
    """Return a new plan item list with the selected changes applied.

    selection holds indexes into the changeset arrays (default: everything).
    Completion status is never overwritten, and the instance's cost only
    follows the template when cost itself is among the item's modifications.
    Without experience, modified items take the values recorded in the
    changeset; when experience no longer has the template the item is kept.
    The input plan and its items are left untouched.
    """

    if not has_item_list(plan, "plan"):
        raise InvalidInputError(
            code="E_SYNC_INVALID_INPUT",
            message="plan must be an object with a 'plan' array",
            file=_file_of(plan),
            path="plan",
        )

    sel = coerce_selection(selection, changeset)
    _check_indexes(sel, changeset)

    snapshot: list[Any] = list(plan["plan"])

    for idx in sorted(sel.added):
        item = changeset.added[idx]
        snapshot.append(
            {
                "plan_item_id": item.id,
                "complete": False,
                "cost": norm_num(item.cost),
                "planning_days": norm_num(item.planning_days),
                "text": item.text,
                "url": item.url,
                "photo": item.photo,
                "parent": item.parent,
            }
        )

    if sel.removed:
        drop = {changeset.removed[idx].id for idx in sel.removed}
        snapshot = [raw for raw in snapshot if not (isinstance(raw, dict) and instance_ref(raw) in drop)]

    if sel.modified:
        templates = index_templates(experience["plan_items"]) if has_item_list(experience, "plan_items") else {}
        for idx in sorted(sel.modified):
            mod = changeset.modified[idx]
            pos = _position_of(snapshot, mod.id)
            if pos is None:
                logger.warning("modified item {} no longer in plan; skipped", mod.id)
                continue
            template = templates.get(mod.id)
            if template is None and experience is not None:
                logger.warning("template {} no longer in experience; skipped", mod.id)
                continue
            snapshot[pos] = _apply_modification(snapshot[pos], mod, template)

    logger.info("applied sync selection {}", sel.counts())
    return snapshot


def parse_selection(spec: str, changeset: Changeset) -> SyncSelection:
    """Parse a CLI selection such as ``added=0,1;removed=none;modified=all``.

    Groups not mentioned select nothing. An empty string or ``all`` selects
    every change.
    """

    text = (spec or "").strip()
    if not text or text == "all":
        return SyncSelection.all_of(changeset)
    if text == "none":
        return SyncSelection.none()

    sizes = changeset.counts()
    groups: dict[str, frozenset[int]] = {}
    for part in text.split(";"):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition("=")
        name = name.strip()
        if not sep or name not in sizes:
            raise SelectionError(
                code="E_SYNC_SELECTION_SYNTAX",
                message=f"expected <added|removed|modified>=<indexes|all|none>, got: {part}",
                path="select",
            )
        value = value.strip()
        if value == "all":
            groups[name] = frozenset(range(sizes[name]))
        elif value in ("none", ""):
            groups[name] = frozenset()
        else:
            try:
                groups[name] = frozenset(int(x) for x in value.split(",") if x.strip())
            except ValueError as e:
                raise SelectionError(
                    code="E_SYNC_SELECTION_SYNTAX",
                    message=f"indexes must be integers: {value}",
                    path=f"select.{name}",
                ) from e

    sel = SyncSelection(
        added=groups.get("added", frozenset()),
        removed=groups.get("removed", frozenset()),
        modified=groups.get("modified", frozenset()),
    )
    _check_indexes(sel, changeset)
    return sel


def _field_modifications(template: dict[str, Any], instance: dict[str, Any]) -> list[FieldModification]:
    mods: list[FieldModification] = []
    for name, t_field, i_field, kind in WATCHED_FIELDS:
        t_val = template.get(t_field)
        i_val = instance.get(i_field)
        if field_differs(kind, t_val, i_val):
            new = norm_num(t_val) if kind == "num" else t_val
            mods.append(FieldModification(field=name, old=i_val, new=new))
    return mods


def _apply_modification(
    existing: dict[str, Any], mod: ModifiedItem, template: Optional[dict[str, Any]]
) -> dict[str, Any]:
    updated = dict(existing)
    cost_changed = mod.modification("cost") is not None

    if template is not None:
        for name in SYNCED_FIELDS:
            value = template.get(name)
            updated[name] = norm_num(value) if name == "planning_days" else value
        if cost_changed:
            updated["cost"] = norm_num(template.get("cost_estimate"))
        return updated

    for m in mod.modifications:
        target = _MOD_TARGETS.get(m.field)
        if target is not None:
            updated[target] = m.new
    return updated


def _position_of(snapshot: list[Any], ref: str) -> Optional[int]:
    for i, raw in enumerate(snapshot):
        if isinstance(raw, dict) and instance_ref(raw) == ref:
            return i
    return None


def coerce_selection(selection: Optional[SelectionLike], changeset: Changeset) -> SyncSelection:
    if selection is None:
        return SyncSelection.all_of(changeset)
    if isinstance(selection, SyncSelection):
        return selection
    if isinstance(selection, Mapping):
        return SyncSelection(
            added=frozenset(selection.get("added") or ()),
            removed=frozenset(selection.get("removed") or ()),
            modified=frozenset(selection.get("modified") or ()),
        )
    raise SelectionError(
        code="E_SYNC_SELECTION_TYPE",
        message=f"unsupported selection type: {type(selection).__name__}",
        path="selection",
    )


def _check_indexes(sel: SyncSelection, changeset: Changeset) -> None:
    sizes = changeset.counts()
    for name, indexes in (("added", sel.added), ("removed", sel.removed), ("modified", sel.modified)):
        for idx in indexes:
            if not isinstance(idx, int) or idx < 0 or idx >= sizes[name]:
                raise SelectionError(
                    code="E_SYNC_SELECTION_OUT_OF_RANGE",
                    message=f"{name} index {idx} out of range (size={sizes[name]})",
                    path=f"selection.{name}",
                )


def _require_items(plan: Any, experience: Any) -> None:
    if not has_item_list(plan, "plan"):
        raise InvalidInputError(
            code="E_SYNC_INVALID_INPUT",
            message="plan must be an object with a 'plan' array",
            file=_file_of(plan),
            path="plan",
        )
    if not has_item_list(experience, "plan_items"):
        raise InvalidInputError(
            code="E_SYNC_INVALID_INPUT",
            message="experience must be an object with a 'plan_items' array",
            file=_file_of(experience),
            path="plan_items",
        )


def _file_of(doc: Any) -> Optional[str]:
    if isinstance(doc, dict):
        f = doc.get("__file__")
        return f if isinstance(f, str) else None
    return None
