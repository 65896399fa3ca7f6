"""Plain-text rendering of STAR stories."""

from __future__ import annotations

from collections.abc import Sequence

from star_gen.domain.models import StarStory


def format_star_story(story: StarStory) -> str:
    """Render one story as labelled blocks, one action step per line."""
    action_lines = "\n".join(f"- {step}" for step in story.action)
    return (
        f"SITUATION:\n{story.situation}\n\n"
        f"TASK:\n{story.task}\n\n"
        f"ACTION:\n{action_lines}\n\n"
        f"RESULT:\n{story.result}"
    )


def format_star_stories(stories: Sequence[StarStory]) -> str:
    blocks = [
        f"Story {index} of {len(stories)}\n\n{format_star_story(story)}"
        for index, story in enumerate(stories, start=1)
    ]
    return "\n\n\n".join(blocks)
