"""
LoongClaw OpenAI-format Provider

Wraps the OpenAI SDK behind the unified LLMProvider interface. Used for
DeepSeek and any other OpenAI-compatible endpoint via base_url.

The conversation history is kept in Anthropic-style blocks; this module
converts it to chat-completions messages and back.
"""

from __future__ import annotations

import json
from typing import Any

from openai import AsyncOpenAI

from loongclaw.providers.base import ContentBlock, LLMProvider, LLMResponse, ProviderConfig

STOP_REASON_MAP = {
    "stop": "end_turn",
    "tool_calls": "tool_use",
    "function_call": "tool_use",
    "length": "max_tokens",
}


class OpenAIProvider(LLMProvider):
    """OpenAI and OpenAI-compatible chat-completions provider."""

    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        config: ProviderConfig | None = None,
        client: AsyncOpenAI | None = None,
    ):
        super().__init__(config or ProviderConfig(models=[self.DEFAULT_MODEL]))
        self._client = client or self._create_client()

    def _create_client(self) -> AsyncOpenAI:
        kwargs: dict[str, Any] = {
            "timeout": self._config.timeout_seconds,
            "max_retries": 0,
        }
        if self._config.api_key:
            kwargs["api_key"] = self._config.api_key
        if self._config.base_url:
            kwargs["base_url"] = self._config.base_url
        return AsyncOpenAI(**kwargs)

    async def _create_message_impl(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int = 4096,
        system: str | None = None,
        tools: list[dict] | None = None,
    ) -> LLMResponse:
        oai_messages: list[dict[str, Any]] = []
        if system:
            oai_messages.append({"role": "system", "content": system})
        for msg in messages:
            oai_messages.extend(self._convert_message(msg))

        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": oai_messages,
        }
        if tools:
            kwargs["tools"] = self._convert_tools(tools)

        response = await self._client.chat.completions.create(**kwargs)
        return self._to_response(response)

    @staticmethod
    def _convert_message(msg: dict[str, Any]) -> list[dict[str, Any]]:
        """Convert one Anthropic-style message into chat-completions messages.

        A user message carrying several tool_result blocks becomes one
        "tool" message per result.
        """
        role = msg.get("role")
        content = msg.get("content", "")

        if isinstance(content, str):
            return [{"role": role, "content": content}]

        if role == "user":
            results = [c for c in content if c.get("type") == "tool_result"]
            if results:
                return [
                    {
                        "role": "tool",
                        "tool_call_id": r.get("tool_use_id", ""),
                        "content": r.get("content", ""),
                    }
                    for r in results
                ]
            text = "\n".join(c.get("text", "") for c in content if c.get("type") == "text")
            return [{"role": "user", "content": text}]

        text_parts = []
        tool_calls = []
        for block in content:
            if block.get("type") == "text":
                text_parts.append(block.get("text", ""))
            elif block.get("type") == "tool_use":
                tool_calls.append({
                    "id": block.get("id", ""),
                    "type": "function",
                    "function": {
                        "name": block.get("name", ""),
                        "arguments": json.dumps(block.get("input", {}), ensure_ascii=False),
                    },
                })

        result: dict[str, Any] = {
            "role": "assistant",
            "content": "\n".join(text_parts) if text_parts else None,
        }
        if tool_calls:
            result["tool_calls"] = tool_calls
        return [result]

    @staticmethod
    def _convert_tools(tools: list[dict]) -> list[dict]:
        """Convert Anthropic tool schemas to the function-calling format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "parameters": tool.get("input_schema", {}),
                },
            }
            for tool in tools
        ]

    @staticmethod
    def _to_response(response: Any) -> LLMResponse:
        """Convert a chat-completions response to LLMResponse."""
        choice = response.choices[0] if response.choices else None
        if not choice:
            return LLMResponse()

        blocks: list[ContentBlock] = []
        msg = choice.message

        if msg.content:
            blocks.append(ContentBlock(type="text", text=msg.content))

        for tc in msg.tool_calls or []:
            try:
                arguments = json.loads(tc.function.arguments or "{}")
            except json.JSONDecodeError:
                # let the router report the malformed call back to the model
                arguments = {"_raw_arguments": tc.function.arguments}
            blocks.append(ContentBlock(
                type="tool_use",
                tool_name=tc.function.name,
                tool_input=arguments if isinstance(arguments, dict) else {"_raw_arguments": arguments},
                tool_use_id=tc.id,
            ))

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=blocks,
            stop_reason=STOP_REASON_MAP.get(choice.finish_reason or "stop", "end_turn"),
            model=getattr(response, "model", "") or "",
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )
