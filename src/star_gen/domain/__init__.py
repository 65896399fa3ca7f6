"""Domain models, ports, and errors for STAR story generation."""

from star_gen.domain.errors import (
    CsvFormatError,
    EmptyResultError,
    EmptyUpstreamResponseError,
    StoryGenerationError,
    UpstreamCallError,
)
from star_gen.domain.models import (
    STORY_CATEGORIES,
    ChatMessage,
    CompletionResponse,
    CompletionUsage,
    FeedbackRecord,
    StarStory,
    StoryCategory,
    StoryRequest,
)
from star_gen.domain.ports import CompletionClient

__all__ = [
    "STORY_CATEGORIES",
    "ChatMessage",
    "CompletionClient",
    "CompletionResponse",
    "CompletionUsage",
    "CsvFormatError",
    "EmptyResultError",
    "EmptyUpstreamResponseError",
    "FeedbackRecord",
    "StarStory",
    "StoryCategory",
    "StoryGenerationError",
    "StoryRequest",
    "UpstreamCallError",
]
