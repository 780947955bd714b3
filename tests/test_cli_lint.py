import json

from typer.testing import CliRunner

from plansync.cli import app


runner = CliRunner()


def test_cli_lint_clean():
    r = runner.invoke(app, ["lint", "--plan", "examples/plan-in-sync.yaml", "--experience", "examples/experience.yaml"])
    assert r.exit_code == 0
    assert "OK: lint passed" in r.output


def test_cli_lint_reports_rules():
    r = runner.invoke(app, ["lint", "--experience", "examples/lint-experience.yaml"])
    assert r.exit_code == 2
    assert "L_NESTED_TOO_DEEP" in r.output
    assert "L_UNKNOWN_PARENT" in r.output
    assert "L_NEGATIVE_VALUE" in r.output


def test_cli_lint_json():
    r = runner.invoke(app, ["lint", "--experience", "examples/lint-experience.yaml", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["command"] == "lint"
    assert payload["error_count"] == 3
    assert {e["source"] for e in payload["errors"]} == {"lint"}


def test_cli_lint_needs_a_document():
    r = runner.invoke(app, ["lint"])
    assert r.exit_code == 2
    assert "E_LINT_NOTHING_TO_LINT" in r.output
