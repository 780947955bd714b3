from __future__ import annotations

import json
import os
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from plansync.core.ai.openai_client import OpenAISummaryClient, Summarizer
from plansync.core.config import SyncConfig, load_config
from plansync.core.errors import (
    ConfigError,
    InvalidInputError,
    PlanError,
    PlanLoadError,
    PlanValidationError,
    SelectionError,
)
from plansync.core.ids import normalize_id
from plansync.core.io.load_document import dump_document, load_document
from plansync.core.lint.lint_documents import lint_documents
from plansync.core.log import configure_logging
from plansync.core.model import DocumentKind
from plansync.core.sync.aggregates import plan_aggregates
from plansync.core.sync.alerts import AlertDismissals, sync_status
from plansync.core.sync.changeset import compute_changeset, parse_selection
from plansync.core.sync.contracts import Changeset
from plansync.core.sync.sync_plan import sync_plan
from plansync.core.tree.item_tree import build_item_tree
from plansync.core.validate.validate_documents import validate_experience, validate_plan

app = typer.Typer(add_completion=False, no_args_is_help=True)

EXIT_DIVERGED = 3


@app.callback()
def _callback(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", help="Optional YAML config file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
) -> None:
    """Plan/experience sync CLI."""
    env = dict(os.environ)
    if log_level:
        env["PLANSYNC_LOG_LEVEL"] = log_level
    try:
        cfg = load_config(config, env=env)
    except FileNotFoundError:
        _print_errors(
            [PlanLoadError(code="E_CONFIG_FILE_NOT_FOUND", message=f"config file not found: {config}", path="config")]
        )
        raise typer.Exit(code=1)
    except ConfigError as e:
        _print_errors([PlanValidationError(code="E_CONFIG_INVALID", message=str(e), file=config, path="config")])
        raise typer.Exit(code=2)

    configure_logging(cfg.log_level)
    ctx.obj = cfg


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a plan or experience file (.yaml/.yml/.json)"),
    kind: str = typer.Option("plan", "--kind", help="Document kind: plan|experience"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a plan or experience snapshot."""
    _check_format(format, "E_VALIDATE_UNKNOWN_FORMAT")
    if kind not in ("plan", "experience"):
        _print_errors(
            [
                PlanValidationError(
                    code="E_VALIDATE_UNKNOWN_KIND",
                    message=f"unknown kind: {kind} (choose one of: plan, experience)",
                    path="kind",
                )
            ]
        )
        raise typer.Exit(code=2)

    doc = _load_or_exit(path, kind, format=format, command="validate")  # type: ignore[arg-type]

    if kind == "plan":
        model, errors = validate_plan(doc)
        count = len(model.plan) if model else 0
    else:
        exp, errors = validate_experience(doc)
        count = len(exp.plan_items) if exp else 0

    if errors:
        if format == "json":
            _emit_json("validate", False, errors=errors, exit_code=2, extra={"kind": kind})
        _print_errors(errors)
        raise typer.Exit(code=2)

    if format == "json":
        _emit_json("validate", True, errors=[], exit_code=0, extra={"kind": kind, "item_count": count})
    typer.echo(f"OK: {kind} with {count} items")


@app.command("lint")
def lint(
    plan: Optional[str] = typer.Option(None, "--plan", help="Plan file to lint"),
    experience: Optional[str] = typer.Option(None, "--experience", help="Experience file to lint"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Lint plan/experience snapshots (rules beyond shape validation)."""
    _check_format(format, "E_LINT_UNKNOWN_FORMAT")
    if plan is None and experience is None:
        _print_errors(
            [
                PlanValidationError(
                    code="E_LINT_NOTHING_TO_LINT",
                    message="pass --plan and/or --experience",
                    path="lint",
                )
            ]
        )
        raise typer.Exit(code=2)

    plan_doc = _load_or_exit(plan, "plan", format=format, command="lint") if plan else None
    exp_doc = _load_or_exit(experience, "experience", format=format, command="lint") if experience else None

    errors: list[PlanError] = []
    if plan_doc is not None:
        errors.extend(validate_plan(plan_doc)[1])
    if exp_doc is not None:
        errors.extend(validate_experience(exp_doc)[1])
    errors.extend(lint_documents(plan=plan_doc, experience=exp_doc))

    if format == "json":
        _emit_json("lint", not errors, errors=errors, exit_code=2 if errors else 0)
    if errors:
        _print_errors(errors)
        raise typer.Exit(code=2)
    typer.echo("OK: lint passed")


@app.command("check")
def check(
    ctx: typer.Context,
    plan: str = typer.Argument(..., help="Plan snapshot file"),
    experience: str = typer.Argument(..., help="Experience snapshot file"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    state_file: Optional[str] = typer.Option(None, "--state-file", help="Alert dismissal state file"),
    fail_on_divergence: bool = typer.Option(
        False, "--fail-on-divergence", help=f"Exit with code {EXIT_DIVERGED} when the plan has diverged"
    ),
) -> None:
    """Report whether a plan has drifted from its experience."""
    _check_format(format, "E_CHECK_UNKNOWN_FORMAT")
    cfg = _config(ctx)

    plan_doc = _load_or_exit(plan, "plan", format=format, command="check")
    exp_doc = _load_or_exit(experience, "experience", format=format, command="check")

    dismissals = _load_dismissals(state_file or cfg.state_file, cfg)
    status = sync_status(plan_doc, exp_doc, dismissals)
    exit_code = EXIT_DIVERGED if status.diverged and fail_on_divergence else 0

    if format == "json":
        _emit_json("check", True, errors=[], exit_code=exit_code, extra=status.to_dict())

    if status.diverged:
        typer.echo("DIVERGED: plan differs from its experience")
        if status.show_alert:
            typer.echo("Run `plansync diff` to review, `plansync sync` to apply.")
    else:
        typer.echo("OK: plan is in sync")
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command("diff")
def diff(
    plan: str = typer.Argument(..., help="Plan snapshot file"),
    experience: str = typer.Argument(..., help="Experience snapshot file"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show added/removed/modified items between a plan and its experience."""
    _check_format(format, "E_DIFF_UNKNOWN_FORMAT")

    plan_doc = _load_or_exit(plan, "plan", format=format, command="diff")
    exp_doc = _load_or_exit(experience, "experience", format=format, command="diff")

    try:
        changeset = compute_changeset(plan_doc, exp_doc)
    except InvalidInputError as e:
        if format == "json":
            _emit_json("diff", False, errors=[e], exit_code=2)
        _print_errors([e])
        raise typer.Exit(code=2)

    if format == "json":
        _emit_json(
            "diff",
            True,
            errors=[],
            exit_code=0,
            extra={"counts": changeset.counts(), "changeset": changeset.to_dict()},
        )

    if changeset.is_empty:
        typer.echo("OK: no changes")
        return
    _render_changeset(changeset)


@app.command("sync")
def sync(
    ctx: typer.Context,
    plan: str = typer.Argument(..., help="Plan snapshot file"),
    experience: str = typer.Argument(..., help="Experience snapshot file"),
    out: str = typer.Option(..., "--out", help="Path to write the updated plan (.yaml/.yml/.json)"),
    select: str = typer.Option(
        "all",
        "--select",
        help="Changes to apply, e.g. 'added=0,1;modified=all' (default: all)",
    ),
    state_file: Optional[str] = typer.Option(None, "--state-file", help="Alert dismissal state file"),
) -> None:
    """Apply selected changes from the experience to the plan."""
    cfg = _config(ctx)

    plan_doc = _load_or_exit(plan, "plan", format="text", command="sync")
    exp_doc = _load_or_exit(experience, "experience", format="text", command="sync")

    _, p_errors = validate_plan(plan_doc)
    _, e_errors = validate_experience(exp_doc)
    if p_errors or e_errors:
        _print_errors(list(p_errors) + list(e_errors))
        raise typer.Exit(code=2)

    try:
        selection = parse_selection(select, compute_changeset(plan_doc, exp_doc))
        result = sync_plan(plan_doc, exp_doc, selection)
    except (InvalidInputError, SelectionError) as e:
        _print_errors([e])
        raise typer.Exit(code=2)

    if result.changeset.is_empty:
        typer.echo("OK: plan already in sync; nothing written")
        return

    dump_document(result.updated_plan(), out)

    plan_id = normalize_id(plan_doc.get("_id"))
    if plan_id is not None:
        path = state_file or cfg.state_file
        dismissals = _load_dismissals(path, cfg)
        dismissals.dismiss(plan_id)
        dismissals.save(path)

    applied = result.applied
    typer.echo(
        f"OK: wrote {out} (added={applied['added']}, removed={applied['removed']}, modified={applied['modified']})"
    )


@app.command("dismiss")
def dismiss(
    ctx: typer.Context,
    plan_id: str = typer.Argument(..., help="Plan id whose out-of-sync alert to hide"),
    state_file: Optional[str] = typer.Option(None, "--state-file", help="Alert dismissal state file"),
) -> None:
    """Hide the out-of-sync alert for a plan for the configured number of days."""
    cfg = _config(ctx)
    path = state_file or cfg.state_file

    dismissals = _load_dismissals(path, cfg)
    dismissals.dismiss(plan_id)
    dismissals.save(path)
    typer.echo(f"OK: alert for {plan_id} hidden for {cfg.dismiss_days:g} days")


@app.command("summary")
def summary(
    plan: str = typer.Argument(..., help="Plan snapshot file"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Print plan aggregates and the item hierarchy."""
    _check_format(format, "E_SUMMARY_UNKNOWN_FORMAT")

    doc = _load_or_exit(plan, "plan", format=format, command="summary")
    model, errors = validate_plan(doc)
    if errors or model is None:
        if format == "json":
            _emit_json("summary", False, errors=errors, exit_code=2)
        _print_errors(errors)
        raise typer.Exit(code=2)

    items = doc["plan"]
    costs = doc.get("costs") if isinstance(doc.get("costs"), list) else None
    agg = plan_aggregates(items, costs)

    if format == "json":
        _emit_json("summary", True, errors=[], exit_code=0, extra={"aggregates": agg.to_dict()})

    typer.echo(
        f"Items: {len(items)}  Total cost: {agg.total_cost:g}  "
        f"Complete: {agg.completion_percentage}%  Max days: {agg.max_days:g}"
    )
    tree = build_item_tree(items)
    orphans = {id(o) for o in tree.orphans}
    for item, depth in tree.ordered():
        mark = "x" if item.get("complete") else " "
        suffix = " (orphaned)" if id(item) in orphans else ""
        typer.echo(f"{'  ' * depth}[{mark}] {item.get('text') or item.get('plan_item_id')}{suffix}")


@app.command("explain")
def explain(
    ctx: typer.Context,
    plan: str = typer.Argument(..., help="Plan snapshot file"),
    experience: str = typer.Argument(..., help="Experience snapshot file"),
    model: Optional[str] = typer.Option(None, "--model", help="Model to use (default: configured model)"),
    base_url: Optional[str] = typer.Option(None, "--base-url"),
) -> None:
    """AI-written summary of what a sync would change."""
    cfg = _config(ctx)

    plan_doc = _load_or_exit(plan, "plan", format="text", command="explain")
    exp_doc = _load_or_exit(experience, "experience", format="text", command="explain")

    if not os.getenv("OPENAI_API_KEY"):
        _print_errors(
            [
                PlanValidationError(
                    code="E_EXPLAIN_NO_API_KEY",
                    message="OPENAI_API_KEY is not set",
                    path="OPENAI_API_KEY",
                )
            ]
        )
        raise typer.Exit(code=2)

    try:
        changeset = compute_changeset(plan_doc, exp_doc)
    except InvalidInputError as e:
        _print_errors([e])
        raise typer.Exit(code=2)

    if changeset.is_empty:
        _print_errors(
            [
                PlanValidationError(
                    code="E_EXPLAIN_NO_CHANGES",
                    message="plan is in sync with its experience; nothing to explain",
                    file=plan_doc.get("__file__"),
                    path="plan",
                )
            ]
        )
        raise typer.Exit(code=2)

    context = {
        "experience_name": exp_doc.get("name"),
        "planned_date": plan_doc.get("planned_date"),
        "counts": changeset.counts(),
        "changeset": changeset.to_dict(),
    }

    client: Summarizer = OpenAISummaryClient(base_url=base_url)
    try:
        result = client.summarize(context=context, model=model or cfg.model)
    except (RuntimeError, ValueError) as e:
        _print_errors([PlanValidationError(code="E_EXPLAIN_FAILED", message=str(e), path="explain")])
        raise typer.Exit(code=2)

    typer.echo(result.headline)
    for bullet in result.bullets:
        typer.echo(f"- {bullet}")


def _render_changeset(changeset: Changeset) -> None:
    console = Console(highlight=False)

    if changeset.added:
        table = Table(title="Added")
        table.add_column("#", justify="right")
        table.add_column("Item")
        table.add_column("Cost", justify="right")
        table.add_column("Days", justify="right")
        for i, a in enumerate(changeset.added):
            table.add_row(str(i), str(a.text or a.id), _fmt(a.cost), _fmt(a.planning_days))
        console.print(table)

    if changeset.removed:
        table = Table(title="Removed")
        table.add_column("#", justify="right")
        table.add_column("Item")
        table.add_column("URL")
        for i, r in enumerate(changeset.removed):
            table.add_row(str(i), str(r.text or r.id), str(r.url or ""))
        console.print(table)

    if changeset.modified:
        table = Table(title="Modified")
        table.add_column("#", justify="right")
        table.add_column("Item")
        table.add_column("Field")
        table.add_column("Old")
        table.add_column("New")
        for i, m in enumerate(changeset.modified):
            for j, mod in enumerate(m.modifications):
                table.add_row(
                    str(i) if j == 0 else "",
                    str(m.text or m.id) if j == 0 else "",
                    mod.field,
                    _fmt(mod.old),
                    _fmt(mod.new),
                )
        console.print(table)


def _fmt(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float):
        return f"{v:g}"
    return str(v)


def _config(ctx: typer.Context) -> SyncConfig:
    cfg = ctx.obj
    if isinstance(cfg, SyncConfig):
        return cfg
    return load_config()


def _load_dismissals(path: str, cfg: SyncConfig) -> AlertDismissals:
    try:
        return AlertDismissals.load(path, days=cfg.dismiss_days)
    except PlanLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)


def _load_or_exit(path: str, kind: DocumentKind, *, format: str, command: str) -> dict[str, Any]:
    try:
        return load_document(path, kind)
    except PlanLoadError as e:
        if format == "json":
            _emit_json(command, False, errors=[e], exit_code=1)
        _print_errors([e])
        raise typer.Exit(code=1)


def _check_format(format: str, code: str) -> None:
    if format not in ("text", "json"):
        err = PlanValidationError(
            code=code,
            message=f"unknown format: {format} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _to_item(e: PlanError) -> dict[str, Any]:
    if isinstance(e, PlanLoadError):
        source = "load"
    elif e.code.startswith("L_"):
        source = "lint"
    elif isinstance(e, (InvalidInputError, SelectionError)):
        source = "sync"
    else:
        source = "validate"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _emit_json(
    command: str,
    ok: bool,
    *,
    errors: list[Any],
    exit_code: int,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    payload: dict[str, Any] = {
        "tool": "plansync",
        "command": command,
        "ok": ok,
        "error_count": len(errors),
        "errors": [_to_item(e) for e in _sorted(errors)],
    }
    if extra:
        payload.update(extra)
    typer.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))
    raise typer.Exit(code=exit_code)


def _sorted(errors: list[Any]) -> list[Any]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))


def _print_errors(errors: list[Any]) -> None:
    for e in _sorted(errors):
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="plansync")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
