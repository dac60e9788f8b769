"""
LoongClaw LLM Providers

- ClaudeProvider: Anthropic Messages API (Anthropic, GLM)
- OpenAIProvider: chat-completions API (DeepSeek, OpenAI)

Usage:
    from loongclaw.providers import create_provider

    provider = create_provider(settings)
    response = await provider.create_message(messages, tools=schemas)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loongclaw.exceptions import ConfigurationError
from loongclaw.providers.base import ContentBlock, LLMProvider, LLMResponse, ProviderConfig
from loongclaw.providers.claude import ClaudeProvider
from loongclaw.providers.openai import OpenAIProvider

if TYPE_CHECKING:
    from loongclaw.config import Settings


def create_provider(settings: Settings) -> LLMProvider:
    """Pick the provider adapter for the configured LLM_PROVIDER."""
    if not settings.api_key:
        raise ConfigurationError(
            f"No API key configured for LLM provider '{settings.llm_provider}'"
        )
    config = ProviderConfig(
        api_key=settings.api_key,
        models=settings.models,
        base_url=settings.api_url,
        max_retries=settings.max_retries,
        timeout_seconds=settings.timeout_seconds,
    )
    if settings.provider_format == "anthropic":
        return ClaudeProvider(config)
    return OpenAIProvider(config)


__all__ = [
    "ClaudeProvider",
    "ContentBlock",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "ProviderConfig",
    "create_provider",
]
