from __future__ import annotations

import json
import os
from typing import Any, Protocol

from loguru import logger

from plansync.core.ai.contracts import ChangesetSummary, parse_changeset_summary


SYSTEM_PROMPT = """You are an assistant for a travel planning app.

A traveller's personal plan was copied from a shared experience template.
The template owner has since changed it. You receive the computed changeset:
- added: template items the plan does not have yet
- removed: plan items whose template item was deleted
- modified: items whose text, url, cost or days changed upstream

Write a short, friendly summary that helps the traveller decide what to sync.
Mention that completion status and their own costs are kept unless the cost
itself changed. Do not invent items that are not in the changeset.

Return ONLY the JSON object (no markdown, no extra text).
"""


# OpenAI Structured Outputs requirements:
# - For ALL object schemas, `additionalProperties` MUST be present and MUST be false.
# - For ALL object schemas, `required` MUST include EVERY key in `properties`.
SUMMARY_JSON_SCHEMA: dict[str, Any] = {
    "name": "changeset_summary",
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "headline": {"type": "string"},
            "bullets": {
                "type": "array",
                "items": {"type": "string"},
            },
        },
        "required": ["headline", "bullets"],
    },
}


class Summarizer(Protocol):
    def summarize(self, *, context: dict[str, Any], model: str) -> ChangesetSummary: ...


class OpenAISummaryClient:
    def __init__(self, *, base_url: str | None = None) -> None:
        self._base_url = base_url

    def summarize(self, *, context: dict[str, Any], model: str) -> ChangesetSummary:
        """Summarize a changeset using OpenAI Responses API structured outputs."""
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is not set")

        from openai import OpenAI

        client = OpenAI(base_url=self._base_url) if self._base_url else OpenAI()

        logger.debug("requesting changeset summary model={}", model)
        resp = client.responses.create(
            model=model,
            temperature=0,
            input=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _render_user_prompt(context)},
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": SUMMARY_JSON_SCHEMA["name"],
                    "schema": SUMMARY_JSON_SCHEMA["schema"],
                    "strict": True,
                }
            },
        )

        raw_text = _extract_output_text(resp)
        try:
            obj = json.loads(raw_text)
        except ValueError as e:
            snippet = raw_text[:800]
            raise RuntimeError(f"Failed to parse model JSON. First 800 chars: {snippet}") from e

        return parse_changeset_summary(obj)


def _extract_output_text(resp: Any) -> str:
    """Extract response text across OpenAI SDK response shapes."""
    raw = getattr(resp, "output_text", None)
    if isinstance(raw, str) and raw.strip():
        return raw

    out = getattr(resp, "output", None)
    if isinstance(out, list):
        texts: list[str] = []
        for item in out:
            content = getattr(item, "content", None)
            if isinstance(content, list):
                for c in content:
                    t = getattr(c, "text", None)
                    if isinstance(t, str) and t.strip():
                        texts.append(t)
        if texts:
            return "\n".join(texts)

    return str(resp)


def _render_user_prompt(context: dict[str, Any]) -> str:
    return (
        "CHANGESET_JSON:\n"
        + json.dumps(context, indent=2, sort_keys=True, default=str)
        + "\n\nReturn only the JSON summary."
    )
