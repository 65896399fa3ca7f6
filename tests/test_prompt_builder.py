from __future__ import annotations

import pytest

from star_gen.core.feedback_csv import IMPACT_COLUMN
from star_gen.core.prompt_builder import (
    SYSTEM_MESSAGE,
    audience_context,
    build_messages,
    build_prompt,
    format_feedback_entries,
    specific_instructions,
)
from star_gen.core.token_estimate import estimate_token_count


def _records(count: int) -> list[dict[str, str]]:
    return [
        {
            "Date": f"2024-01-{index + 1:02d}",
            "Source": f"Reviewer {index}",
            "Project / Context": f"Project {index}",
            "Tags": "Delivery",
            IMPACT_COLUMN: "4",
            "Actual Feedback": f"Feedback number {index}.",
        }
        for index in range(count)
    ]


def test_format_feedback_entries_numbers_entries_and_marks_missing_columns() -> None:
    rendered = format_feedback_entries(
        [
            {"Source": "Manager", "Actual Feedback": "  Great\n  work  "},
            {"Tags": "SQL"},
        ]
    )
    first, second = rendered.split("\n\n")
    assert first.splitlines() == [
        "Feedback Entry #1:",
        "Date: N/A",
        "Source: Manager",
        "Project/Context: N/A",
        "Feedback Type: N/A",
        "Tags/Skills: N/A",
        "Impact Rating: N/A",
        "Actual Feedback: Great work",
    ]
    assert second.startswith("Feedback Entry #2:")
    assert "Tags/Skills: SQL" in second


def test_build_prompt_contains_sections_in_order() -> None:
    prompt = build_prompt(_records(2), "leadership", "Keep it short.")
    base = prompt.index("STAR (Situation, Task, Action, Result)")
    category = prompt.index("leadership and management abilities")
    entries = prompt.index("Feedback Entry #1:")
    extra = prompt.index("Additional context and instructions: Keep it short.")
    schema = prompt.index("VERY IMPORTANT")
    assert base < category < entries < extra < schema
    assert '"action": ["First step I took...", "Second step I took..."]' in prompt


def test_build_prompt_omits_blank_instructions() -> None:
    prompt = build_prompt(_records(1), "top5", "   ")
    assert "Additional context and instructions" not in prompt


@pytest.mark.parametrize("category", ["colleague", "client", "employer"])
def test_audience_categories_add_audience_context(category: str) -> None:
    context = audience_context(category)
    assert context
    assert context in build_prompt(_records(1), category)


def test_unknown_category_gets_generic_instructions() -> None:
    assert audience_context("board") == ""
    assert specific_instructions("board") == (
        'Generate professional STAR stories tailored for the "board" context.'
    )


def test_build_prompt_limits_entries_per_category() -> None:
    assert build_prompt(_records(12), "top5").count("Feedback Entry #") == 5
    assert build_prompt(_records(12), "top10").count("Feedback Entry #") == 10


def test_build_prompt_respects_record_cap(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STAR_GEN_MAX_PROMPT_RECORDS", "2")
    prompt = build_prompt(_records(8), "top5")
    assert prompt.count("Feedback Entry #") == 2
    assert "Reviewer 2" not in prompt


def test_build_messages_pairs_system_and_user_roles() -> None:
    messages = build_messages("hello")
    assert [message.role for message in messages] == ["system", "user"]
    assert messages[0].content == SYSTEM_MESSAGE
    assert messages[1].as_dict() == {"role": "user", "content": "hello"}


@pytest.mark.parametrize(("text", "expected"), [("", 0), ("abc", 1), ("abcd", 1), ("abcde", 2)])
def test_estimate_token_count_rounds_up_quarter_length(text: str, expected: int) -> None:
    assert estimate_token_count(text) == expected
