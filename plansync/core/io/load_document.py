from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from plansync.core.errors import PlanLoadError
from plansync.core.model import DocumentKind


def load_document(path: str, kind: DocumentKind) -> dict[str, Any]:
    """Load a YAML/JSON plan or experience snapshot.

    The document is returned as-is (REST payload shape) plus ``__file__``.
    Does not coerce types; the validator owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise PlanLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:  # pragma: no cover
        raise PlanLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw_text)
        elif suffix == ".json":
            data = json.loads(raw_text)
        else:
            raise PlanLoadError(
                code="E_UNSUPPORTED_FORMAT",
                message="supported formats are .yaml/.yml and .json",
                file=str(p),
            )
    except PlanLoadError:
        raise
    except (yaml.YAMLError, ValueError) as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise PlanLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise PlanLoadError(
            code="E_INVALID_TOP_LEVEL",
            message=f"top-level {kind} document must be a mapping/object",
            file=str(p),
        )

    out = dict(data)
    out["__file__"] = str(p)
    return out


def dump_document(doc: dict[str, Any], path: str) -> None:
    """Write a document as YAML (or JSON when the path ends in .json)."""

    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)

    clean = {k: v for k, v in doc.items() if k != "__file__"}
    with open(p, "w", encoding="utf-8") as f:
        if p.suffix.lower() == ".json":
            json.dump(clean, f, indent=2, sort_keys=False, default=str)
            f.write("\n")
        else:
            yaml.safe_dump(clean, f, sort_keys=False, default_flow_style=False, allow_unicode=True)
