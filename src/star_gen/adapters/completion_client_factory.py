"""Selects the configured completion provider."""

from __future__ import annotations

import os

from star_gen.adapters.azure_openai_completion import AzureOpenAICompletionClient
from star_gen.adapters.template_completion import TemplateCompletionClient
from star_gen.domain.ports import CompletionClient


def completion_client_from_env() -> CompletionClient:
    """Build the provider named by STAR_GEN_COMPLETION_PROVIDER."""
    provider = os.environ.get("STAR_GEN_COMPLETION_PROVIDER", "azure-openai").strip().lower()
    if provider in {"", "azure-openai", "azure"}:
        return AzureOpenAICompletionClient.from_env()
    if provider == "template":
        return TemplateCompletionClient()
    raise RuntimeError(
        "Unsupported STAR_GEN_COMPLETION_PROVIDER value. Expected azure-openai or template."
    )
