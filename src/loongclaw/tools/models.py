"""
LoongClaw Tool System Models

Shared types for the tool gatekeeper. Every tool call is looked up,
validated, checked against the sandbox or the command policy, and only
then handed to its handler.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ToolCategory(str, Enum):
    """Which gate the execution pipeline applies before the handler runs."""
    FILE_SYSTEM = "FILE_SYSTEM"
    SHELL = "SHELL"
    UTILITY = "UTILITY"


@dataclass(frozen=True)
class ToolDefinition:
    """Name, description and JSON-schema parameters advertised to the model."""
    name: str
    description: str
    input_schema: dict = field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )

    @property
    def required(self) -> list[str]:
        return list(self.input_schema.get("required", []))


@dataclass
class ToolResult:
    """Result of a tool call as fed back into the conversation."""
    tool_use_id: str
    content: str
    is_error: bool = False


class ToolCallRequest(BaseModel):
    """A pending tool call from the model.

    Created when the LLM returns a tool_use block.
    """
    id: str = Field(default_factory=lambda: f"tc-{uuid.uuid4().hex[:8]}")
    tool_name: str
    tool_input: dict[str, Any] = Field(default_factory=dict)
    tool_use_id: str = ""
    session_id: str = ""


class ToolCallRecord(BaseModel):
    """Outcome of a single pass through the execution pipeline.

    Delivered to router observers (the CLI prints these when show_tools is on).
    """
    tool_name: str
    tool_input: dict[str, Any] = Field(default_factory=dict)
    success: bool
    result: Any = None
    error: str | None = None
    error_type: str | None = None
    duration_ms: float = 0.0


def render_result(value: Any) -> str:
    """Render a handler result as text for the model."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)
