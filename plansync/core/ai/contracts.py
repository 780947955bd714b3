from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChangesetSummary:
    headline: str
    bullets: list[str]


def parse_changeset_summary(obj: dict[str, Any]) -> ChangesetSummary:
    if not isinstance(obj, dict):
        raise ValueError("ChangesetSummary must be an object")

    headline = obj.get("headline")
    bullets = obj.get("bullets", [])

    if not isinstance(headline, str) or not headline.strip():
        raise ValueError("headline must be a non-empty string")
    if not isinstance(bullets, list) or any(not isinstance(x, str) for x in bullets):
        raise ValueError("bullets must be a list[str]")

    return ChangesetSummary(headline=headline.strip(), bullets=[b.strip() for b in bullets if b.strip()])
