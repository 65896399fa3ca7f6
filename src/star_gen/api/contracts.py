"""Typed request and response contracts for the HTTP API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from star_gen.domain.models import StarStory, StoryCategory


class ContractModel(BaseModel):
    """Base model config used by all API contracts."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, populate_by_name=True)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError("Feedback values must be strings, numbers, booleans, or null.")


class ParseCsvRequest(ContractModel):
    """Raw CSV export to split into feedback rows."""

    csv_data: str = Field(alias="csvData", min_length=1)


class ParseCsvResponse(ContractModel):
    success: Literal[True] = True
    data: list[dict[str, str]]


class GenerateStoriesRequest(ContractModel):
    """Feedback rows plus the audience selector for story generation."""

    parsed_data: list[dict[str, str]] = Field(alias="parsedData", min_length=1)
    interaction_type: StoryCategory = Field(default="top5", alias="interactionType")
    custom_prompt: str = Field(default="", alias="customPrompt", max_length=4000)

    @field_validator("parsed_data", mode="before")
    @classmethod
    def _stringify_cells(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        rows: list[Any] = []
        for row in value:
            if isinstance(row, dict):
                rows.append({str(key).strip(): _cell_text(cell) for key, cell in row.items()})
            else:
                rows.append(row)
        return rows

    @field_validator("custom_prompt", mode="before")
    @classmethod
    def _none_prompt_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class StoryPayload(ContractModel):
    """One STAR story; ``action`` is an ordered list of steps."""

    situation: str
    task: str
    action: list[str]
    result: str

    @classmethod
    def from_story(cls, story: StarStory) -> StoryPayload:
        return cls(
            situation=story.situation,
            task=story.task,
            action=list(story.action),
            result=story.result,
        )

    def to_story(self) -> StarStory:
        return StarStory(
            situation=self.situation,
            task=self.task,
            action=tuple(self.action),
            result=self.result,
        )


class GenerateStoriesResponse(ContractModel):
    success: Literal[True] = True
    stories: list[StoryPayload]


class ErrorResponse(ContractModel):
    """Failure body returned with every non-2xx status."""

    success: Literal[False] = False
    error: str
