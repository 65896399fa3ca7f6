"""Category-aware ranking and selection of feedback entries."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Final

from star_gen.core.feedback_csv import impact_rating
from star_gen.domain.models import FeedbackRecord

DEFAULT_ENTRY_COUNT: Final[int] = 5
TOP10_ENTRY_COUNT: Final[int] = 10

_TAGS = "Tags"
_FEEDBACK = "Actual Feedback"
_PROJECT = "Project / Context"

# (tag terms, feedback terms, project terms) per category.
_FOCUS_TERMS: Final[dict[str, tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]]]] = {
    "leadership": (
        ("lead", "manage", "team", "direct"),
        ("lead", "manage", "team"),
        ("lead", "manage"),
    ),
    "technical": (
        ("tech", "develop", "engineer", "code", "software", "architect", "program"),
        ("tech", "develop", "solution"),
        ("tech", "develop"),
    ),
    "sales": (
        ("sales", "client", "customer", "revenue", "business development"),
        ("sales", "client", "customer", "revenue"),
        ("sales", "client"),
    ),
    "colleague": (
        ("team", "collaborat"),
        ("team", "collaborat"),
        (),
    ),
    "client": (
        (),
        ("result", "increase", "improve", "success", "roi", "saving", "revenue"),
        (),
    ),
}
_MIN_IMPACT: Final[dict[str, int]] = {"employer": 4, "custom": 3}


def entry_count(category: str) -> int:
    """Number of feedback entries a category draws on."""
    return TOP10_ENTRY_COUNT if category == "top10" else DEFAULT_ENTRY_COUNT


def rank_by_impact(records: Sequence[FeedbackRecord]) -> list[FeedbackRecord]:
    """Sort records by impact rating, highest first, keeping source order on ties."""
    return sorted(records, key=impact_rating, reverse=True)


def _field(record: FeedbackRecord, column: str) -> str:
    return record.get(column, "").lower()


def _mentions_any(text: str, terms: Sequence[str]) -> bool:
    return any(term in text for term in terms)


def _focus_predicate(category: str) -> Callable[[FeedbackRecord], bool] | None:
    terms = _FOCUS_TERMS.get(category)
    if terms is None:
        return None
    tag_terms, feedback_terms, project_terms = terms

    def matches(record: FeedbackRecord) -> bool:
        return (
            _mentions_any(_field(record, _TAGS), tag_terms)
            or _mentions_any(_field(record, _FEEDBACK), feedback_terms)
            or _mentions_any(_field(record, _PROJECT), project_terms)
        )

    return matches


def _instruction_words(instructions: str) -> list[str]:
    return [word for word in instructions.lower().split() if len(word) > 3]


def _prefer(
    records: list[FeedbackRecord],
    predicate: Callable[[FeedbackRecord], bool],
    count: int,
) -> list[FeedbackRecord]:
    focused = [record for record in records if predicate(record)]
    return focused if len(focused) >= count else records


def select_feedback(
    records: Sequence[FeedbackRecord],
    category: str,
    instructions: str = "",
) -> list[FeedbackRecord]:
    """Pick the entries a category's stories should be drawn from.

    Records are ranked by impact. A category's focused subset (keyword match,
    minimum impact, or overlap with custom instructions) only replaces the
    ranked list when it holds enough entries to fill the story count.
    """
    count = entry_count(category)
    candidates = rank_by_impact(records)

    min_impact = _MIN_IMPACT.get(category)
    if min_impact is not None:
        candidates = _prefer(
            candidates, lambda record: impact_rating(record) >= min_impact, count
        )

    predicate = _focus_predicate(category)
    if predicate is not None:
        candidates = _prefer(candidates, predicate, count)

    if category == "custom":
        words = _instruction_words(instructions)
        if words:
            candidates = _prefer(
                candidates,
                lambda record: any(
                    word in _field(record, column)
                    for word in words
                    for column in (_PROJECT, _FEEDBACK, _TAGS)
                ),
                count,
            )
    return candidates[:count]
