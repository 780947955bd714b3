import json

from typer.testing import CliRunner

from plansync.cli import app


runner = CliRunner()


def test_cli_diff_json_counts():
    r = runner.invoke(app, ["diff", "examples/plan-diverged.yaml", "examples/experience.yaml", "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["counts"] == {"added": 1, "removed": 1, "modified": 1}

    cs = payload["changeset"]
    assert cs["added"][0]["_id"] == "t4"
    assert cs["removed"][0]["_id"] == "x9"
    assert cs["modified"][0]["modifications"] == [{"field": "cost", "old": 500, "new": 600}]


def test_cli_diff_text_tables():
    r = runner.invoke(app, ["diff", "examples/plan-diverged.yaml", "examples/experience.yaml"])
    assert r.exit_code == 0
    assert "Added" in r.output
    assert "Removed" in r.output
    assert "Modified" in r.output
    assert "Louvre timed entry" in r.output
    assert "Seine dinner cruise" in r.output


def test_cli_diff_no_changes():
    r = runner.invoke(app, ["diff", "examples/plan-in-sync.yaml", "examples/experience.yaml"])
    assert r.exit_code == 0
    assert "OK: no changes" in r.output


def test_cli_diff_requires_item_lists(tmp_path):
    p = tmp_path / "plan.yaml"
    p.write_text("_id: empty\n", encoding="utf-8")
    r = runner.invoke(app, ["diff", str(p), "examples/experience.yaml"])
    assert r.exit_code == 2
    assert "E_SYNC_INVALID_INPUT" in r.output


def test_cli_diff_unknown_format():
    r = runner.invoke(app, ["diff", "examples/plan-diverged.yaml", "examples/experience.yaml", "--format", "xml"])
    assert r.exit_code == 2
    assert "E_DIFF_UNKNOWN_FORMAT" in r.output
