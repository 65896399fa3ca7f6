"""Core STAR story domain models."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Final, Literal

FeedbackRecord = Mapping[str, str]

StoryCategory = Literal[
    "top5",
    "top10",
    "leadership",
    "technical",
    "sales",
    "colleague",
    "client",
    "employer",
    "custom",
]
STORY_CATEGORIES: Final[tuple[str, ...]] = (
    "top5",
    "top10",
    "leadership",
    "technical",
    "sales",
    "colleague",
    "client",
    "employer",
    "custom",
)

ChatRole = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """One role-tagged message sent to the completion service."""

    role: ChatRole
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class StoryRequest:
    """Feedback rows plus the audience selector for one generation request."""

    records: Sequence[FeedbackRecord]
    category: str
    instructions: str = ""


@dataclass(frozen=True)
class StarStory:
    """A validated Situation/Task/Action/Result story.

    ``action`` is always kept as an ordered tuple of steps, even when the model
    answered with a single string.
    """

    situation: str
    task: str
    action: tuple[str, ...]
    result: str

    def action_text(self) -> str:
        """Join action steps into the single-string shape."""
        return " ".join(self.action)

    def as_dict(self) -> dict[str, object]:
        return {
            "situation": self.situation,
            "task": self.task,
            "action": list(self.action),
            "result": self.result,
        }


@dataclass(frozen=True)
class CompletionUsage:
    """Token accounting reported by the completion service."""

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


@dataclass(frozen=True)
class CompletionResponse:
    """Provider-neutral view of a chat completion."""

    choices: tuple[str | None, ...]
    model: str = ""
    response_id: str = ""
    finish_reason: str | None = None
    usage: CompletionUsage = field(default_factory=CompletionUsage)
