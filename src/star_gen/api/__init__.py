"""Public API surface for HTTP serving and the Python client."""

from star_gen.api.app import create_app
from star_gen.api.contracts import (
    ErrorResponse,
    GenerateStoriesRequest,
    GenerateStoriesResponse,
    ParseCsvRequest,
    ParseCsvResponse,
    StoryPayload,
)
from star_gen.api.python_interface import StarApiError, StarStoryApiClient

__all__ = [
    "ErrorResponse",
    "GenerateStoriesRequest",
    "GenerateStoriesResponse",
    "ParseCsvRequest",
    "ParseCsvResponse",
    "StarApiError",
    "StarStoryApiClient",
    "StoryPayload",
    "create_app",
]
