"""Prompt construction for STAR story requests."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Final

from star_gen.core.feedback_csv import IMPACT_COLUMN
from star_gen.core.feedback_selection import select_feedback
from star_gen.domain.models import ChatMessage, FeedbackRecord

SYSTEM_MESSAGE: Final[str] = (
    "You are a helpful assistant helping me craft professional stories about myself. "
    "You excel at formatting responses as JSON when requested."
)

_SPECIFIC_INSTRUCTIONS: Final[dict[str, str]] = {
    "top5": (
        "Generate my top 5 most impactful STAR stories based on the feedback data provided. "
        "These should be diverse, covering different skills and situations, and showcase my "
        "most significant achievements. Select stories that would be most impressive in "
        "interview scenarios."
    ),
    "top10": (
        "Generate my top 10 most impactful STAR stories based on the feedback data provided. "
        "These should be diverse, covering different skills and situations, and showcase my "
        "most significant achievements. For each story, create a clear Situation, Task, "
        "Action, and Result that demonstrates substantial positive impact. Select stories "
        "that would be most impressive in interview scenarios."
    ),
    "leadership": (
        "Generate STAR stories that highlight my leadership and management abilities. Focus "
        "on instances where I led teams, influenced stakeholders, made difficult decisions, "
        "resolved conflicts, or developed other team members. Include examples that "
        "demonstrate strategic thinking, emotional intelligence, delegation, motivation, and "
        "other key leadership competencies."
    ),
    "technical": (
        "Generate STAR stories that showcase my technical expertise and problem-solving "
        "abilities. Focus on instances where I solved complex technical challenges, "
        "implemented innovative solutions, demonstrated deep expertise in specific "
        "technologies, or improved systems/processes through technical means. Include "
        "quantifiable results where possible."
    ),
    "sales": (
        "Generate STAR stories that highlight my client success and sales achievements. Focus "
        "on instances where I won new business, strengthened client relationships, overcame "
        "objections, identified new opportunities, or delivered exceptional client value. "
        "Include specific metrics on revenue generated, deals closed, or client satisfaction "
        "improvements where possible."
    ),
}

_AUDIENCE_CONTEXT: Final[dict[str, str]] = {
    "colleague": (
        "These stories will be shared with colleagues who are familiar with my industry and "
        "organization. The tone should be collaborative and emphasis should be on teamwork "
        "and mutual success. Include relevant technical details that a peer would understand "
        "and appreciate."
    ),
    "client": (
        "These stories will be shared with potential clients to demonstrate my expertise and "
        "value. The tone should be professional and confident but not boastful. Focus on "
        "client outcomes and benefits rather than internal processes. Use "
        "industry-appropriate language but avoid excessive jargon."
    ),
    "employer": (
        "These stories will be shared in job interviews or performance reviews. The tone "
        "should be achievement-oriented and demonstrate my unique value proposition. Each "
        "story should clearly highlight skills relevant to potential employers and include "
        "quantifiable results wherever possible."
    ),
}

_ENTRY_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("Date", "Date"),
    ("Source", "Source"),
    ("Project/Context", "Project / Context"),
    ("Feedback Type", "Feedback Type"),
    ("Tags/Skills", "Tags"),
    ("Impact Rating", IMPACT_COLUMN),
    ("Actual Feedback", "Actual Feedback"),
)

_BASE_PROMPT: Final[str] = """You are an expert in crafting professional STAR (Situation, Task, Action, Result) stories.
Create compelling and authentic narratives based on the following feedback data that I've received.

Each story must follow this structure:
- Situation: Concisely set the context with specific details about the challenge or opportunity
- Task: Clearly explain my specific responsibilities or objectives in this situation
- Action: List the specific steps I took, focusing on MY individual contribution even in team settings
- Result: Quantify the positive outcomes where possible and link them directly to my actions"""

_OUTPUT_FORMAT: Final[str] = """VERY IMPORTANT: Your response MUST be formatted as a valid JSON array of story objects. Each object should have the following structure:

[
  {
    "situation": "Description of the situation...",
    "task": "Description of the task...",
    "action": ["First step I took...", "Second step I took..."],
    "result": "Description of the result achieved..."
  }
]

DO NOT include any explanations, introductions, or text outside of this JSON array. The response should be parseable as JSON without any modifications."""


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def specific_instructions(category: str) -> str:
    """Category-specific generation guidance, generic for unknown categories."""
    instructions = _SPECIFIC_INSTRUCTIONS.get(category)
    if instructions is not None:
        return instructions
    return f'Generate professional STAR stories tailored for the "{category}" context.'


def audience_context(category: str) -> str:
    return _AUDIENCE_CONTEXT.get(category, "")


def format_feedback_entries(records: Sequence[FeedbackRecord]) -> str:
    """Render records as numbered prompt entries, `N/A` for blank columns."""
    blocks: list[str] = []
    for index, record in enumerate(records, start=1):
        lines = [f"Feedback Entry #{index}:"]
        for label, column in _ENTRY_FIELDS:
            value = " ".join(record.get(column, "").split()) or "N/A"
            lines.append(f"{label}: {value}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def build_prompt(
    records: Sequence[FeedbackRecord],
    category: str,
    instructions: str = "",
) -> str:
    """Assemble the full user prompt for one story request."""
    max_records = _int_env(
        "STAR_GEN_MAX_PROMPT_RECORDS", 200, minimum=1, maximum=100_000
    )
    selected = select_feedback(records[:max_records], category, instructions)

    header_parts = [_BASE_PROMPT, specific_instructions(category)]
    context = audience_context(category)
    if context:
        header_parts.append(context)
    sections = ["\n\n".join(header_parts), format_feedback_entries(selected)]
    extra = instructions.strip()
    if extra:
        sections.append(f"Additional context and instructions: {extra}")
    sections.append(_OUTPUT_FORMAT)
    return "\n\n".join(section for section in sections if section)


def build_messages(prompt: str) -> list[ChatMessage]:
    """Wrap a prompt with the fixed system message."""
    return [
        ChatMessage(role="system", content=SYSTEM_MESSAGE),
        ChatMessage(role="user", content=prompt),
    ]
