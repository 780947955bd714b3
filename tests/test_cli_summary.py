import json

from typer.testing import CliRunner

from plansync.cli import app


runner = CliRunner()


def test_cli_summary_text():
    r = runner.invoke(app, ["summary", "examples/plan-in-sync.yaml"])
    assert r.exit_code == 0
    lines = r.stdout.splitlines()
    assert lines[0] == "Items: 4  Total cost: 1582  Complete: 25%  Max days: 30"
    assert lines[1:] == [
        "[x] Book flight",
        "[ ] Reserve hotel",
        "[ ] Museum pass",
        "  [ ] Louvre timed entry",
    ]


def test_cli_summary_orphans(tmp_path):
    p = tmp_path / "plan.yaml"
    p.write_text(
        "plan:\n"
        "  - plan_item_id: a\n"
        "    text: Alpha\n"
        "  - plan_item_id: b\n"
        "    text: Lost child\n"
        "    parent: gone\n",
        encoding="utf-8",
    )
    r = runner.invoke(app, ["summary", str(p)])
    assert r.exit_code == 0
    assert "[ ] Lost child (orphaned)" in r.output


def test_cli_summary_json():
    r = runner.invoke(app, ["summary", "examples/plan.json", "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["aggregates"] == {"total_cost": 730, "completion_percentage": 50, "max_days": 30}
