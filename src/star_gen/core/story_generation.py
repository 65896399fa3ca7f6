"""Request-scoped orchestration of prompt, completion, and parsing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from star_gen.core.prompt_builder import build_messages, build_prompt
from star_gen.core.star_parser import ParseDiagnostics, parse_star_stories_with_diagnostics
from star_gen.core.token_estimate import estimate_token_count
from star_gen.domain.errors import EmptyUpstreamResponseError
from star_gen.domain.models import CompletionResponse, StarStory, StoryRequest
from star_gen.domain.ports import CompletionClient

logger = logging.getLogger(__name__)


@dataclass
class GenerationContext:
    """State for one generation request; discarded with the response."""

    request: StoryRequest
    prompt: str = ""
    prompt_tokens_estimate: int = 0
    completion_text: str = ""
    stories: list[StarStory] = field(default_factory=list)
    diagnostics: ParseDiagnostics | None = None


def extract_completion_text(response: CompletionResponse) -> str:
    """Return the first choice's content, rejecting empty responses."""
    if not response.choices:
        raise EmptyUpstreamResponseError("Completion service returned no choices.")
    content = response.choices[0]
    if content is None or not content.strip():
        raise EmptyUpstreamResponseError("Completion service returned an empty message.")
    return content


def generate_stories_with_context(
    request: StoryRequest,
    client: CompletionClient,
) -> GenerationContext:
    """Run the full pipeline and keep every intermediate artifact."""
    context = GenerationContext(request=request)
    logger.info(
        "stories.generate.start records=%s category=%s has_instructions=%s",
        len(request.records),
        request.category,
        bool(request.instructions.strip()),
    )

    context.prompt = build_prompt(request.records, request.category, request.instructions)
    context.prompt_tokens_estimate = estimate_token_count(context.prompt)
    logger.info(
        "stories.prompt.built chars=%s estimated_tokens=%s model=%s",
        len(context.prompt),
        context.prompt_tokens_estimate,
        client.model_id,
    )
    logger.debug("stories.prompt.text prompt=%r", context.prompt)

    response = client.complete(build_messages(context.prompt))
    context.completion_text = extract_completion_text(response)

    context.stories, context.diagnostics = parse_star_stories_with_diagnostics(
        context.completion_text
    )
    logger.info(
        "stories.generate.done stories=%s stage=%s dropped=%s",
        len(context.stories),
        context.diagnostics.stage,
        context.diagnostics.dropped_count,
    )
    return context


def generate_stories(request: StoryRequest, client: CompletionClient) -> list[StarStory]:
    """Generate validated STAR stories for one request."""
    return generate_stories_with_context(request, client).stories
