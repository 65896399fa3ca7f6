"""Error taxonomy for story generation requests."""

from __future__ import annotations


class StoryGenerationError(RuntimeError):
    """Base class for failures that abort a story generation request."""


class UpstreamCallError(StoryGenerationError):
    """Completion service was unreachable or returned an API-level error."""


class EmptyUpstreamResponseError(StoryGenerationError):
    """Completion service answered with zero choices or an empty message."""


class EmptyResultError(StoryGenerationError):
    """Completion text produced no story that passed validation."""


class CsvFormatError(ValueError):
    """CSV text could not be read as a header plus feedback rows."""
