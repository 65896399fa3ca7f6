"""Ports for outbound completion calls."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from star_gen.domain.models import ChatMessage, CompletionResponse


class CompletionClient(Protocol):
    """Sends role-tagged messages to a chat-completion service.

    Implementations raise ``UpstreamCallError`` on transport or API failures and
    ``EmptyUpstreamResponseError`` when the service returns zero choices.
    """

    @property
    def model_id(self) -> str:
        ...

    def complete(self, messages: Sequence[ChatMessage]) -> CompletionResponse:
        ...
