from plansync.core.errors import InvalidInputError
from plansync.core.sync.changeset import compute_changeset


def _experience(*items):
    return {"plan_items": list(items)}


def _plan(*items):
    return {"plan": list(items)}


def test_identical_snapshots_produce_empty_changeset():
    exp = _experience({"_id": "t1", "text": "Book flight", "cost_estimate": 500, "planning_days": 30})
    plan = _plan({"plan_item_id": "t1", "text": "Book flight", "cost": 500, "planning_days": 30, "complete": True})
    cs = compute_changeset(plan, exp)
    assert cs.is_empty
    assert cs.to_dict() == {"added": [], "removed": [], "modified": []}


def test_added_detects_new_template_items():
    exp = _experience(
        {"_id": "A", "text": "Flight", "cost_estimate": 500, "planning_days": 30},
        {"_id": "B", "text": "Hotel", "url": "https://h", "cost_estimate": 900, "planning_days": 14, "photo": "ph", "parent": "A"},
    )
    plan = _plan({"plan_item_id": "A", "text": "Flight", "cost": 500, "planning_days": 30})
    cs = compute_changeset(plan, exp)

    assert len(cs.added) == 1
    added = cs.added[0]
    assert added.id == "B"
    assert added.cost == 900
    assert added.to_dict() == {
        "_id": "B",
        "text": "Hotel",
        "url": "https://h",
        "cost": 900,
        "planning_days": 14,
        "photo": "ph",
        "parent": "A",
    }
    assert cs.removed == []
    assert cs.modified == []


def test_added_defaults_missing_numbers_to_zero():
    exp = _experience({"_id": "A", "text": "Visa"})
    cs = compute_changeset(_plan(), exp)
    assert cs.added[0].cost == 0
    assert cs.added[0].planning_days == 0


def test_removed_detects_orphaned_instances():
    exp = _experience({"_id": "A", "text": "Flight"})
    plan = _plan(
        {"plan_item_id": "A", "text": "Flight"},
        {"plan_item_id": "X", "text": "Cruise", "url": "https://c", "cost": 120},
    )
    cs = compute_changeset(plan, exp)
    assert len(cs.removed) == 1
    assert cs.removed[0].to_dict() == {"_id": "X", "text": "Cruise", "url": "https://c"}
    assert cs.added == []


def test_modified_reports_field_level_diffs():
    exp = _experience({"_id": "A", "text": "Flight", "cost_estimate": 100, "planning_days": 5})
    plan = _plan({"plan_item_id": "A", "text": "Flight", "cost": 80, "planning_days": 5})
    cs = compute_changeset(plan, exp)

    assert len(cs.modified) == 1
    mod = cs.modified[0]
    assert mod.id == "A"
    assert [m.to_dict() for m in mod.modifications] == [{"field": "cost", "old": 80, "new": 100}]


def test_modified_groups_all_fields_in_watch_order():
    exp = _experience({"_id": "A", "text": "New", "url": "https://new", "cost_estimate": 10, "planning_days": 7})
    plan = _plan({"plan_item_id": "A", "text": "Old", "url": "https://old", "cost": 5, "planning_days": 2})
    cs = compute_changeset(plan, exp)

    assert len(cs.modified) == 1
    assert cs.modified[0].fields() == ["text", "url", "cost", "days"]
    days = cs.modified[0].modification("days")
    assert days is not None
    assert (days.old, days.new) == (2, 7)


def test_modified_new_number_defaults_to_zero():
    exp = _experience({"_id": "A", "text": "Flight"})
    plan = _plan({"plan_item_id": "A", "text": "Flight", "cost": 50})
    cs = compute_changeset(plan, exp)
    mod = cs.modified[0].modification("cost")
    assert mod is not None
    assert (mod.old, mod.new) == (50, 0)


def test_entries_follow_document_order():
    exp = _experience({"_id": "c", "text": "C"}, {"_id": "a", "text": "A"}, {"_id": "b", "text": "B"})
    cs = compute_changeset(_plan(), exp)
    assert [a.id for a in cs.added] == ["c", "a", "b"]


def test_changeset_is_deterministic():
    exp = _experience({"_id": "A", "text": "x", "cost_estimate": 1}, {"_id": "B", "text": "y"})
    plan = _plan({"plan_item_id": "A", "text": "x"}, {"plan_item_id": "Z", "text": "z"})
    first = compute_changeset(plan, exp).to_dict()
    for _ in range(3):
        assert compute_changeset(plan, exp).to_dict() == first


def test_object_ids_are_normalized():
    exp = _experience({"_id": {"$oid": "abc123"}, "text": "Flight"})
    plan = _plan({"plan_item_id": "abc123", "text": "Flight"})
    assert compute_changeset(plan, exp).is_empty


def test_missing_item_lists_raise_invalid_input():
    for plan, exp in [
        (None, _experience()),
        ({"plan": None}, _experience()),
        (_plan(), None),
        (_plan(), {"plan_items": {"not": "a list"}}),
    ]:
        try:
            compute_changeset(plan, exp)
            assert False, "expected InvalidInputError"
        except InvalidInputError as e:
            assert e.code == "E_SYNC_INVALID_INPUT"
