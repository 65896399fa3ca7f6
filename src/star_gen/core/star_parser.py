"""Parsing and validation of completion text into STAR stories.

Completion output is untrusted. Parsing is strict-then-lenient:

1. JSON stage: decode the span from the first ``[`` to the last ``]`` (or the
   whole text) as a JSON array and treat each element as a candidate.
2. Labelled-text stage, only when stage 1 cannot produce an array: split the
   text on blank lines and scan each chunk line by line for ``Situation:``,
   ``Task:``, ``Action:`` and ``Result:`` labels.

Every candidate then goes through the same validation. Invalid candidates are
dropped; only a response with no valid story at all is an error.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final, Literal

from star_gen.domain.errors import EmptyResultError
from star_gen.domain.models import StarStory

STORY_LABELS: Final[tuple[str, ...]] = ("situation", "task", "action", "result")
_TEXT_FIELDS: Final[tuple[str, ...]] = ("situation", "task", "result")

_WHITESPACE = re.compile(r"\s+")
_BLANK_LINE = re.compile(r"\n[ \t]*\n")
_LABEL_LINE = re.compile(
    r"^\s*(?:#{1,6}\s*|>\s*|[-*•]\s+|\d+[.)]\s+)?"
    r"[*_]{0,2}(?P<label>situation|task|action|result)[*_]{0,2}\s*:[*_]{0,2}\s*(?P<rest>.*)$",
    re.IGNORECASE,
)
_INLINE_LABEL = re.compile(
    r"[*_]{0,2}\b(?P<label>situation|task|action|result)[*_]{0,2}\s*:[*_]{0,2}\s*",
    re.IGNORECASE,
)
_HEADING_PREFIX = re.compile(r"[-:#|>]\s*$|^[\W_]*$")
_BULLET_LINE = re.compile(r"^\s*(?:•\s*|[-*]\s+|\d+[.)]\s+)(?P<item>.*)$")
_SENTENCE_BREAK = re.compile(r"(?<=\.)\s+|;\s+")

ParseStage = Literal["json", "labelled_text"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseDiagnostics:
    """How a completion was parsed, for logging."""

    stage: ParseStage
    candidate_count: int
    dropped_count: int


def normalize_whitespace(value: str) -> str:
    """Trim and collapse internal whitespace runs to single spaces."""
    return _WHITESPACE.sub(" ", value).strip()


def _json_candidates(raw_text: str) -> list[object] | None:
    start = raw_text.find("[")
    end = raw_text.rfind("]")
    document = raw_text[start : end + 1] if 0 <= start < end else raw_text
    try:
        decoded = json.loads(document, strict=False)
    except ValueError:
        return None
    if not isinstance(decoded, list):
        return None
    return decoded


def split_action_steps(segment: str) -> list[str]:
    """Turn an action segment into ordered steps.

    Bulleted lines (``•``, ``-``, ``*``, ``1.``, ``1)``) become one step each.
    Without bullets the segment is split into sentences on ``.`` or ``;``
    followed by whitespace. A period stays on its step; a semicolon only
    separates clauses and is dropped.
    """
    lines = [line for line in segment.splitlines() if line.strip()]
    if any(_BULLET_LINE.match(line) for line in lines):
        steps: list[str] = []
        for line in lines:
            match = _BULLET_LINE.match(line)
            steps.append((match.group("item") if match else line).strip())
        return steps
    fragments = [fragment.strip() for fragment in _SENTENCE_BREAK.split(segment.strip())]
    fragments = [fragment for fragment in fragments if fragment]
    if fragments:
        return fragments
    return [segment]


def _line_pieces(line: str) -> list[tuple[str | None, str]]:
    """Split one line at every label it contains.

    Text ahead of the first label has no label of its own. When it only looks
    like a heading (``Story 1 -``, ``###``) it is dropped.
    """
    match = _LABEL_LINE.match(line)
    label: str | None = match.group("label").lower() if match else None
    text = match.group("rest") if match else line
    pieces: list[tuple[str | None, str]] = []
    cursor = 0
    for inline in _INLINE_LABEL.finditer(text):
        leading = text[cursor : inline.start()]
        if label is not None or not _HEADING_PREFIX.search(leading):
            pieces.append((label, leading))
        label = inline.group("label").lower()
        cursor = inline.end()
    pieces.append((label, text[cursor:]))
    return pieces


def _scan_labelled_chunk(chunk: str) -> list[dict[str, str]]:
    """Collect label segments from one chunk.

    A segment runs from its label to the next recognized label, on the same
    line or a later one. A label that repeats within the chunk starts a new
    group.
    """
    groups: list[dict[str, list[str]]] = []
    current: dict[str, list[str]] = {}
    active: str | None = None
    for line in chunk.split("\n"):
        for label, text in _line_pieces(line):
            if label is None:
                if active is not None:
                    current[active].append(text)
                continue
            if label in current:
                groups.append(current)
                current = {}
            current[label] = [text]
            active = label
    if current:
        groups.append(current)
    return [{label: "\n".join(lines) for label, lines in group.items()} for group in groups]


def _text_candidates(raw_text: str) -> list[object]:
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    candidates: list[object] = []
    for chunk in _BLANK_LINE.split(text):
        for segments in _scan_labelled_chunk(chunk):
            if not all(label in segments for label in STORY_LABELS):
                continue
            candidates.append(
                {
                    "situation": segments["situation"],
                    "task": segments["task"],
                    "action": split_action_steps(segments["action"]),
                    "result": segments["result"],
                }
            )
    return candidates


def _lookup(candidate: Mapping[object, object], key: str) -> object:
    if key in candidate:
        return candidate[key]
    for name, value in candidate.items():
        if isinstance(name, str) and name.strip().lower() == key:
            return value
    return None


def validate_candidate(candidate: object) -> StarStory | None:
    """Return a normalized story, or ``None`` when the candidate is unusable."""
    if not isinstance(candidate, Mapping):
        return None
    texts: dict[str, str] = {}
    for key in _TEXT_FIELDS:
        value = _lookup(candidate, key)
        if not isinstance(value, str):
            return None
        normalized = normalize_whitespace(value)
        if not normalized:
            return None
        texts[key] = normalized

    action = _lookup(candidate, "action")
    raw_steps: list[object]
    if isinstance(action, str):
        raw_steps = [action]
    elif isinstance(action, list) and action:
        raw_steps = action
    else:
        return None
    steps: list[str] = []
    for step in raw_steps:
        if not isinstance(step, str):
            return None
        normalized = normalize_whitespace(step)
        if not normalized:
            return None
        steps.append(normalized)

    return StarStory(
        situation=texts["situation"],
        task=texts["task"],
        action=tuple(steps),
        result=texts["result"],
    )


def parse_star_stories_with_diagnostics(
    raw_text: str,
) -> tuple[list[StarStory], ParseDiagnostics]:
    """Parse completion text and report which stage produced the stories."""
    stage: ParseStage = "json"
    candidates = _json_candidates(raw_text)
    if candidates is None:
        stage = "labelled_text"
        candidates = _text_candidates(raw_text)

    stories: list[StarStory] = []
    for index, candidate in enumerate(candidates):
        story = validate_candidate(candidate)
        if story is None:
            logger.debug("parser.candidate_dropped stage=%s index=%s", stage, index)
            continue
        stories.append(story)

    diagnostics = ParseDiagnostics(
        stage=stage,
        candidate_count=len(candidates),
        dropped_count=len(candidates) - len(stories),
    )
    if not stories:
        raise EmptyResultError("Parsing produced no valid stories.")
    return stories, diagnostics


def parse_star_stories(raw_text: str) -> list[StarStory]:
    """Parse completion text into validated stories, in source order."""
    stories, _ = parse_star_stories_with_diagnostics(raw_text)
    return stories
