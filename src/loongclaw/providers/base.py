"""
LoongClaw LLM Provider Base

Abstract interface for LLM providers. The conversation loop speaks one
message format (Anthropic-style content blocks); each provider converts
to and from its own wire format.

Key design decisions:
- Async-first (all providers are async)
- Retry with exponential backoff built into the base class
- A list of models tried in order; the first one that answers wins
- Provider-agnostic response model (LLMResponse)
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from loongclaw.exceptions import ProviderError
from loongclaw.logging import get_logger

logger = get_logger("loongclaw.providers")


class ContentBlock(BaseModel):
    """A single content block in an LLM response."""
    type: str = "text"  # "text" or "tool_use"
    text: str = ""
    tool_name: str = ""
    tool_input: dict[str, Any] = Field(default_factory=dict)
    tool_use_id: str = ""

    def to_message_block(self) -> dict[str, Any]:
        """Anthropic-style block for the conversation history."""
        if self.type == "tool_use":
            return {
                "type": "tool_use",
                "id": self.tool_use_id,
                "name": self.tool_name,
                "input": self.tool_input,
            }
        return {"type": "text", "text": self.text}


class LLMResponse(BaseModel):
    """Unified response from any LLM provider."""
    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: str = "end_turn"
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(b.text for b in self.content if b.type == "text")

    @property
    def tool_calls(self) -> list[ContentBlock]:
        return [b for b in self.content if b.type == "tool_use"]

    @property
    def has_tool_use(self) -> bool:
        return any(b.type == "tool_use" for b in self.content)


class ProviderConfig(BaseModel):
    """Configuration for an LLM provider."""
    api_key: str | None = None
    models: list[str] = Field(default_factory=list)
    base_url: str | None = None
    max_retries: int = Field(default=3, ge=1)
    timeout_seconds: float = 60.0
    retry_base_delay: float = 1.0  # exponential backoff base (1s, 2s, 4s)


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Subclasses implement _create_message_impl() for a single model;
    create_message() adds retries and model fallback.
    """

    def __init__(self, config: ProviderConfig | None = None):
        self._config = config or ProviderConfig()

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def models(self) -> list[str]:
        return list(self._config.models)

    @abstractmethod
    async def _create_message_impl(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int = 4096,
        system: str | None = None,
        tools: list[dict] | None = None,
    ) -> LLMResponse:
        """Provider-specific call for one model."""
        ...

    async def create_message(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int = 4096,
        system: str | None = None,
        tools: list[dict] | None = None,
    ) -> LLMResponse:
        """Create a message, retrying each configured model with backoff.

        Args:
            messages: Anthropic-style message dicts (role + content).
            max_tokens: Maximum tokens in the response.
            system: Optional system prompt.
            tools: Optional tool schemas (Anthropic format).

        Raises:
            ProviderError: every model failed on every attempt.
        """
        if not self._config.models:
            raise ProviderError(self.name, "no model configured")

        last_error: Exception | None = None
        for model in self._config.models:
            for attempt in range(self._config.max_retries):
                try:
                    return await self._create_message_impl(
                        messages,
                        model=model,
                        max_tokens=max_tokens,
                        system=system,
                        tools=tools,
                    )
                except Exception as e:
                    last_error = e
                    logger.warning(
                        "Provider call failed (attempt %d/%d): %s",
                        attempt + 1, self._config.max_retries, e,
                        extra={"provider": self.name, "model": model},
                    )
                    if attempt < self._config.max_retries - 1:
                        delay = self._config.retry_base_delay * (2 ** attempt)
                        await asyncio.sleep(delay)

        raise ProviderError(
            self.name,
            f"failed after {self._config.max_retries} retries on {', '.join(self._config.models)}: {last_error}",
        ) from last_error
