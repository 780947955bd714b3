from typer.testing import CliRunner

from plansync.cli import app
from plansync.core.ai.contracts import ChangesetSummary


runner = CliRunner()


def test_cli_explain_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    r = runner.invoke(app, ["explain", "examples/plan-diverged.yaml", "examples/experience.yaml"])
    assert r.exit_code == 2
    assert "E_EXPLAIN_NO_API_KEY" in r.output


def test_cli_explain_rejects_empty_changeset(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "dummy")
    r = runner.invoke(app, ["explain", "examples/plan-in-sync.yaml", "examples/experience.yaml"])
    assert r.exit_code == 2
    assert "E_EXPLAIN_NO_CHANGES" in r.output


def test_cli_explain_prints_summary(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "dummy")
    seen = {}

    class FakeClient:
        def __init__(self, **kwargs):
            pass

        def summarize(self, *, context, model):
            seen["context"] = context
            seen["model"] = model
            return ChangesetSummary(headline="Three updates to your Paris plan", bullets=["New: Louvre timed entry"])

    import plansync.cli as cli_mod

    monkeypatch.setattr(cli_mod, "OpenAISummaryClient", FakeClient)

    r = runner.invoke(
        app,
        ["--config", "examples/plansync.yaml", "explain", "examples/plan-diverged.yaml", "examples/experience.yaml"],
    )
    assert r.exit_code == 0
    assert "Three updates to your Paris plan" in r.output
    assert "- New: Louvre timed entry" in r.output
    assert seen["model"] == "gpt-4.1-mini"
    assert seen["context"]["counts"] == {"added": 1, "removed": 1, "modified": 1}


def test_cli_explain_model_failure(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "dummy")

    class BrokenClient:
        def __init__(self, **kwargs):
            pass

        def summarize(self, *, context, model):
            raise RuntimeError("Failed to parse model JSON")

    import plansync.cli as cli_mod

    monkeypatch.setattr(cli_mod, "OpenAISummaryClient", BrokenClient)

    r = runner.invoke(app, ["explain", "examples/plan-diverged.yaml", "examples/experience.yaml", "--model", "m"])
    assert r.exit_code == 2
    assert "E_EXPLAIN_FAILED" in r.output
