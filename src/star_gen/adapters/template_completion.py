"""Offline completion provider that drafts stories from fixed templates.

The provider reads the numbered feedback entries back out of the user prompt
and answers with a JSON array, so the full request path runs without a hosted
model.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence

from star_gen.domain.errors import EmptyUpstreamResponseError
from star_gen.domain.models import ChatMessage, CompletionResponse

_ENTRY_HEADER = re.compile(r"^Feedback Entry #\d+:\s*$")
_ENTRY_FIELD = re.compile(r"^(?P<label>[A-Za-z/ ]+):\s*(?P<value>.*)$")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
_MISSING = "N/A"


def _value(entry: dict[str, str], label: str) -> str:
    value = entry.get(label, "").strip()
    return "" if value == _MISSING else value


def _prompt_entries(prompt: str) -> list[dict[str, str]]:
    entries: list[dict[str, str]] = []
    current: dict[str, str] | None = None
    for line in prompt.splitlines():
        stripped = line.strip()
        if _ENTRY_HEADER.match(stripped):
            current = {}
            entries.append(current)
            continue
        if current is None:
            continue
        if not stripped:
            current = None
            continue
        match = _ENTRY_FIELD.match(stripped)
        if match:
            current[match.group("label").strip()] = match.group("value")
    return entries


def _sentences(text: str) -> list[str]:
    return [sentence.strip() for sentence in _SENTENCE_END.split(text) if sentence.strip()]


def draft_story(entry: dict[str, str]) -> dict[str, object]:
    """Draft one STAR story from a prompt feedback entry."""
    project = _value(entry, "Project/Context") or "a significant project"
    tags = [tag.strip() for tag in _value(entry, "Tags/Skills").split(",") if tag.strip()]
    skill = tags[0] if tags else "professional"
    source = _value(entry, "Source")
    feedback = _sentences(_value(entry, "Actual Feedback"))

    situation = (
        f"While working on {project}, I encountered a situation that required me "
        f"to apply my {skill} skills."
    )
    if feedback:
        situation = f"{situation} {feedback[0]}"
    action = [
        "I analyzed the situation thoroughly and agreed on clear objectives with stakeholders.",
        "I developed a plan of action and executed it methodically.",
    ]
    if len(feedback) > 1:
        action.append(f"Specifically, {feedback[1]}")
    result = "This approach led to a successful outcome for the project."
    if source:
        result = f"{result} {source} recognized the contribution in their feedback."
    if len(feedback) > 2:
        result = f"{result} {' '.join(feedback[2:])}"
    return {
        "situation": situation,
        "task": (
            "I needed to ensure successful delivery while addressing challenges related to "
            f"{', '.join(tags) if tags else 'the project requirements'}."
        ),
        "action": action,
        "result": result,
    }


class TemplateCompletionClient:
    """Deterministic stand-in for a hosted completion service."""

    model_id = "template.v1"

    def complete(self, messages: Sequence[ChatMessage]) -> CompletionResponse:
        prompt = next(
            (message.content for message in reversed(messages) if message.role == "user"), ""
        )
        entries = _prompt_entries(prompt)
        if not entries:
            raise EmptyUpstreamResponseError("Template provider found no feedback entries.")
        stories = [draft_story(entry) for entry in entries]
        return CompletionResponse(
            choices=(json.dumps(stories, indent=2),),
            model=self.model_id,
            finish_reason="stop",
        )
