"""Azure OpenAI chat-completion adapter."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from openai import AzureOpenAI, OpenAIError

from star_gen.domain.errors import EmptyUpstreamResponseError, UpstreamCallError
from star_gen.domain.models import ChatMessage, CompletionResponse, CompletionUsage

DEFAULT_API_VERSION = "2024-06-01"
_PREVIEW_CHARS = 200

logger = logging.getLogger(__name__)


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class AzureOpenAISettings:
    """Connection settings for one Azure OpenAI chat deployment."""

    endpoint: str
    deployment: str
    api_version: str = DEFAULT_API_VERSION
    api_key: str | None = None
    ad_token: str | None = None

    @classmethod
    def from_env(cls) -> AzureOpenAISettings:
        """Read settings from the Azure OpenAI environment variables."""
        endpoint = _env("AZURE_OPENAI_ENDPOINT")
        if not endpoint:
            raise RuntimeError("AZURE_OPENAI_ENDPOINT is required for the azure-openai provider.")
        deployment = _env("CHAT_MODEL_DEPLOYMENT_NAME")
        if not deployment:
            raise RuntimeError(
                "CHAT_MODEL_DEPLOYMENT_NAME is required for the azure-openai provider."
            )
        api_key = _env("AZURE_OPENAI_KEY") or None
        ad_token = _env("AZURE_OPENAI_AD_TOKEN") or None
        if api_key is None and ad_token is None:
            raise RuntimeError("Set AZURE_OPENAI_KEY or AZURE_OPENAI_AD_TOKEN for Azure OpenAI.")
        return cls(
            endpoint=endpoint,
            deployment=deployment,
            api_version=_env("OPENAI_API_VERSION") or DEFAULT_API_VERSION,
            api_key=api_key,
            ad_token=ad_token,
        )


def _usage(raw: Any) -> CompletionUsage:
    if raw is None:
        return CompletionUsage()
    return CompletionUsage(
        prompt_tokens=getattr(raw, "prompt_tokens", None),
        completion_tokens=getattr(raw, "completion_tokens", None),
        total_tokens=getattr(raw, "total_tokens", None),
    )


class AzureOpenAICompletionClient:
    """Sends chat messages to an Azure OpenAI deployment.

    The underlying client is built with ``max_retries=0``: a failed call is
    reported to the caller as-is.
    """

    def __init__(self, settings: AzureOpenAISettings, *, client: Any | None = None) -> None:
        self._settings = settings
        self._client = client or AzureOpenAI(
            azure_endpoint=settings.endpoint,
            azure_deployment=settings.deployment,
            api_version=settings.api_version,
            api_key=settings.api_key,
            azure_ad_token=settings.ad_token,
            max_retries=0,
        )

    @classmethod
    def from_env(cls) -> AzureOpenAICompletionClient:
        return cls(AzureOpenAISettings.from_env())

    @property
    def model_id(self) -> str:
        return self._settings.deployment

    def complete(self, messages: Sequence[ChatMessage]) -> CompletionResponse:
        logger.info(
            "completion.request deployment=%s messages=%s",
            self._settings.deployment,
            len(messages),
        )
        try:
            response = self._client.chat.completions.create(
                model=self._settings.deployment,
                messages=[message.as_dict() for message in messages],
            )
        except OpenAIError as exc:
            logger.error(
                "completion.failed deployment=%s error=%s", self._settings.deployment, exc
            )
            raise UpstreamCallError(f"Failed to get a response from Azure OpenAI: {exc}") from exc

        choices = list(getattr(response, "choices", None) or [])
        if not choices:
            logger.warning(
                "completion.empty deployment=%s response_id=%s",
                self._settings.deployment,
                getattr(response, "id", ""),
            )
            raise EmptyUpstreamResponseError("Azure OpenAI returned no choices.")

        contents = tuple(
            getattr(getattr(choice, "message", None), "content", None) for choice in choices
        )
        completion = CompletionResponse(
            choices=contents,
            model=str(getattr(response, "model", "") or ""),
            response_id=str(getattr(response, "id", "") or ""),
            finish_reason=getattr(choices[0], "finish_reason", None),
            usage=_usage(getattr(response, "usage", None)),
        )
        logger.info(
            "completion.received model=%s response_id=%s choices=%s finish_reason=%s "
            "prompt_tokens=%s completion_tokens=%s",
            completion.model,
            completion.response_id,
            len(contents),
            completion.finish_reason,
            completion.usage.prompt_tokens,
            completion.usage.completion_tokens,
        )
        logger.debug("completion.preview content=%r", (contents[0] or "")[:_PREVIEW_CHARS])
        return completion
