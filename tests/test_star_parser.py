from __future__ import annotations

import json

import pytest

from star_gen.core.star_parser import (
    normalize_whitespace,
    parse_star_stories,
    parse_star_stories_with_diagnostics,
    split_action_steps,
    validate_candidate,
)
from star_gen.domain.errors import EmptyResultError


def _story(**overrides: object) -> dict[str, object]:
    story: dict[str, object] = {
        "situation": "s",
        "task": "t",
        "action": ["a"],
        "result": "r",
    }
    story.update(overrides)
    return story


def test_json_array_wrapped_in_prose_is_extracted() -> None:
    raw = (
        'Here you go:\n[{"situation":"s","task":"t","action":["a1","a2"],"result":"r"}]\nEnjoy!'
    )
    stories, diagnostics = parse_star_stories_with_diagnostics(raw)
    assert len(stories) == 1
    assert stories[0].situation == "s"
    assert stories[0].action == ("a1", "a2")
    assert diagnostics.stage == "json"
    assert diagnostics.dropped_count == 0


def test_bare_string_action_becomes_single_step() -> None:
    raw = json.dumps([_story(action="did X")])
    stories = parse_star_stories(raw)
    assert stories[0].action == ("did X",)
    assert stories[0].action_text() == "did X"


def test_invalid_candidates_are_dropped_without_aborting() -> None:
    raw = json.dumps([_story(), _story(situation="")])
    stories, diagnostics = parse_star_stories_with_diagnostics(raw)
    assert len(stories) == 1
    assert diagnostics.candidate_count == 2
    assert diagnostics.dropped_count == 1


@pytest.mark.parametrize(
    "candidate",
    [
        _story(task="   "),
        _story(result=None),
        _story(action=[]),
        _story(action=["ok", "  "]),
        _story(action=["ok", 3]),
        _story(action=7),
        {"situation": "s", "task": "t", "action": ["a"]},
        "not an object",
        ["s", "t", "a", "r"],
    ],
)
def test_validate_candidate_rejects_incomplete_shapes(candidate: object) -> None:
    assert validate_candidate(candidate) is None


def test_validation_normalizes_whitespace_in_every_field() -> None:
    story = validate_candidate(
        _story(
            situation="  A   busy\n\tquarter ",
            task="Ship\n it",
            action=["  first   step ", "second\nstep"],
            result=" done  ",
        )
    )
    assert story is not None
    assert story.situation == "A busy quarter"
    assert story.task == "Ship it"
    assert story.action == ("first step", "second step")
    assert story.result == "done"


def test_validate_candidate_accepts_capitalized_keys() -> None:
    story = validate_candidate(
        {"Situation": "s", "Task": "t", "Action": "a", "Result": "r"}
    )
    assert story is not None
    assert story.action == ("a",)


def test_labelled_text_fallback_reads_bulleted_actions() -> None:
    raw = "Situation: faced X\nTask: had to Y\nAction: - did A\n- did B\nResult: improved Z"
    stories, diagnostics = parse_star_stories_with_diagnostics(raw)
    assert diagnostics.stage == "labelled_text"
    assert len(stories) == 1
    story = stories[0]
    assert story.situation == "faced X"
    assert story.task == "had to Y"
    assert story.action == ("did A", "did B")
    assert story.result == "improved Z"


def test_labelled_text_labels_are_case_insensitive_and_order_independent() -> None:
    raw = "RESULT: grew revenue\naction: called clients\nSITUATION: slow quarter\nTask: fix it"
    stories = parse_star_stories(raw)
    assert stories[0].situation == "slow quarter"
    assert stories[0].result == "grew revenue"
    assert stories[0].action == ("called clients",)


def test_labelled_text_accepts_markdown_decorated_labels() -> None:
    raw = (
        "Story 1\n"
        "**Situation:** The build was flaky.\n"
        "### Task: Stabilize CI\n"
        "**Action**:\n"
        "1. Added retries to network tests\n"
        "2) Split the slow suite\n"
        "- **Result:** Build time halved."
    )
    stories = parse_star_stories(raw)
    assert stories[0].situation == "The build was flaky."
    assert stories[0].task == "Stabilize CI"
    assert stories[0].action == ("Added retries to network tests", "Split the slow suite")
    assert stories[0].result == "Build time halved."


def test_labelled_text_segments_span_multiple_lines() -> None:
    raw = (
        "Situation: The team\nwas understaffed.\n"
        "Task: Deliver the release.\n"
        "Action: I reprioritized the backlog. I paired with juniors; I cut scope.\n"
        "Result: Shipped\non time."
    )
    story = parse_star_stories(raw)[0]
    assert story.situation == "The team was understaffed."
    assert story.action == (
        "I reprioritized the backlog.",
        "I paired with juniors",
        "I cut scope.",
    )
    assert story.result == "Shipped on time."


def test_labelled_text_chunks_keep_order_and_skip_incomplete_chunks() -> None:
    raw = (
        "Situation: first\nTask: t1\nAction: a1\nResult: r1\n"
        "\n"
        "Situation: orphan\nTask: no action or result\n"
        "   \n"
        "Situation: second\nTask: t2\nAction: a2\nResult: r2"
    )
    stories, diagnostics = parse_star_stories_with_diagnostics(raw)
    assert [story.situation for story in stories] == ["first", "second"]
    assert diagnostics.candidate_count == 2


def test_repeated_label_inside_one_chunk_starts_a_new_story() -> None:
    raw = (
        "Situation: one\nTask: t\nAction: a\nResult: r\n"
        "Situation: two\nTask: t\nAction: a\nResult: r"
    )
    stories = parse_star_stories(raw)
    assert [story.situation for story in stories] == ["one", "two"]


def test_json_order_is_preserved() -> None:
    raw = json.dumps([_story(situation=f"s{index}") for index in range(5)])
    assert [story.situation for story in parse_star_stories(raw)] == [
        "s0",
        "s1",
        "s2",
        "s3",
        "s4",
    ]


def test_undecodable_json_falls_through_to_labelled_text() -> None:
    raw = '{"situation": "s"}\n\nSituation: x\nTask: y\nAction: z\nResult: w'
    stories, diagnostics = parse_star_stories_with_diagnostics(raw)
    assert diagnostics.stage == "labelled_text"
    assert stories[0].situation == "x"


def test_json_strings_with_raw_newlines_are_tolerated() -> None:
    raw = '[{"situation": "line one\nline two", "task": "t", "action": "a", "result": "r"}]'
    assert parse_star_stories(raw)[0].situation == "line one line two"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "no json here, no labels either",
        "[]",
        '[{"situation": "", "task": "", "action": [], "result": ""}]',
        "Situation: only\nTask: two labels",
    ],
)
def test_no_valid_story_raises_empty_result_error(raw: str) -> None:
    with pytest.raises(EmptyResultError, match="no valid stories"):
        parse_star_stories(raw)


def test_normalize_whitespace_is_idempotent() -> None:
    once = normalize_whitespace("  a \n\t b   c  ")
    assert once == "a b c"
    assert normalize_whitespace(once) == once


def test_split_action_steps_prefers_bullets_over_sentences() -> None:
    assert split_action_steps("• Mapped the process. Then more\n• Automated it") == [
        "Mapped the process. Then more",
        "Automated it",
    ]


def test_split_action_steps_without_terminators_keeps_whole_segment() -> None:
    assert split_action_steps("  rebuilt the pipeline  ") == ["rebuilt the pipeline"]
    assert split_action_steps("   ") == ["   "]


def test_array_nested_in_json_object_is_extracted_by_bracket_span() -> None:
    raw = json.dumps({"stories": [_story(situation="nested")]})
    stories, diagnostics = parse_star_stories_with_diagnostics(raw)
    assert diagnostics.stage == "json"
    assert stories[0].situation == "nested"


def test_json_object_without_array_is_not_a_story_list() -> None:
    with pytest.raises(EmptyResultError):
        parse_star_stories(json.dumps(_story()))


def test_labelled_text_reads_all_labels_on_one_line() -> None:
    raw = (
        "Situation: outage hit prod. Task: restore service. "
        "Action: rolled back the deploy. Result: back up in 10 minutes."
    )
    stories, diagnostics = parse_star_stories_with_diagnostics(raw)
    assert diagnostics.stage == "labelled_text"
    story = stories[0]
    assert story.situation == "outage hit prod."
    assert story.task == "restore service."
    assert story.action == ("rolled back the deploy.",)
    assert story.result == "back up in 10 minutes."


def test_labelled_text_drops_heading_before_first_label() -> None:
    raw = "Story 1 - Situation: outage\nTask: restore\nAction: rolled back\nResult: recovered"
    story = parse_star_stories(raw)[0]
    assert story.situation == "outage"
    assert story.result == "recovered"


def test_inline_label_after_prose_keeps_the_prose() -> None:
    raw = (
        "Situation: slow builds\nTask: speed them up\n"
        "Action: cached dependencies.\nI trimmed the matrix. **Result:** builds took half as long"
    )
    story = parse_star_stories(raw)[0]
    assert story.action == ("cached dependencies.", "I trimmed the matrix.")
    assert story.result == "builds took half as long"


def test_one_line_stories_in_one_chunk_split_on_repeated_labels() -> None:
    raw = (
        "Situation: a Task: b Action: c Result: d\n"
        "Story 2: Situation: e Task: f Action: g Result: h"
    )
    assert [story.situation for story in parse_star_stories(raw)] == ["a", "e"]


def test_split_action_steps_keeps_periods_and_drops_semicolons() -> None:
    assert split_action_steps("I planned. I built; I shipped") == [
        "I planned.",
        "I built",
        "I shipped",
    ]
