"""
LoongClaw Anthropic-format Provider

Wraps the Anthropic SDK (anthropic.AsyncAnthropic) behind the unified
LLMProvider interface. Also serves Anthropic-compatible endpoints such
as GLM's through ProviderConfig.base_url.
"""

from __future__ import annotations

from typing import Any

import anthropic

from loongclaw.providers.base import ContentBlock, LLMProvider, LLMResponse, ProviderConfig


class ClaudeProvider(LLMProvider):
    """Anthropic Messages API provider.

    Falls back to the ANTHROPIC_API_KEY env var if no key is configured.
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        config: ProviderConfig | None = None,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        super().__init__(config or ProviderConfig(models=[self.DEFAULT_MODEL]))
        self._client = client or anthropic.AsyncAnthropic(
            api_key=self._config.api_key or None,
            base_url=self._config.base_url or None,
            timeout=self._config.timeout_seconds,
            max_retries=0,
        )

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        return self._client

    async def _create_message_impl(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int = 4096,
        system: str | None = None,
        tools: list[dict] | None = None,
    ) -> LLMResponse:
        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = tools

        response = await self._client.messages.create(**kwargs)
        return self._to_response(response)

    @staticmethod
    def _to_response(response: Any) -> LLMResponse:
        """Convert an Anthropic API response to LLMResponse."""
        blocks: list[ContentBlock] = []
        for block in response.content:
            if block.type == "text":
                blocks.append(ContentBlock(type="text", text=block.text))
            elif block.type == "tool_use":
                blocks.append(ContentBlock(
                    type="tool_use",
                    tool_name=block.name,
                    tool_input=block.input or {},
                    tool_use_id=block.id,
                ))

        return LLMResponse(
            content=blocks,
            stop_reason=response.stop_reason or "end_turn",
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
