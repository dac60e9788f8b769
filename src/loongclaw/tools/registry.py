"""
LoongClaw Tool Registry

Central registry for every tool the model can call. Each tool is
registered once at startup with its category, which tells the
SafeToolRouter which gate (sandbox or command policy) to apply before
the handler runs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from loongclaw.tools.models import ToolCategory, ToolDefinition

if TYPE_CHECKING:
    from loongclaw.tools.context import ToolContext

ToolHandler = Callable[[dict[str, Any], "ToolContext"], Any]


class RegisteredTool:
    """A tool definition paired with its handler and gate category.

    Handlers receive the validated arguments and the pipeline context.
    File-system tools name the argument holding their target path so
    the router can check it before the handler is invoked.
    """

    def __init__(
        self,
        definition: ToolDefinition,
        handler: ToolHandler,
        category: ToolCategory = ToolCategory.UTILITY,
        path_argument: str | None = None,
    ):
        if not definition.name or not definition.description:
            raise ValueError("A tool needs both a name and a description")
        if category == ToolCategory.FILE_SYSTEM and not path_argument:
            raise ValueError(f"File-system tool '{definition.name}' must declare its path argument")
        self.definition = definition
        self.handler = handler
        self.category = category
        self.path_argument = path_argument

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def input_schema(self) -> dict:
        return self.definition.input_schema


class ToolRegistry:
    """Name → tool mapping, populated at startup and read-only afterwards."""

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, tool: RegisteredTool) -> None:
        """Register a tool.

        Raises ValueError if a tool with the same name already exists.
        """
        if not isinstance(tool, RegisteredTool):
            raise TypeError(f"Expected RegisteredTool, got {type(tool).__name__}")
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def register_all(self, tools: Iterable[RegisteredTool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> RegisteredTool | None:
        """Look up a registered tool by name."""
        return self._tools.get(name)

    def get_all(self) -> list[RegisteredTool]:
        """Return all registered tools."""
        return list(self._tools.values())

    def list_tools(self) -> list[dict[str, Any]]:
        """Name, description and parameter schema of every tool."""
        return [
            {"name": t.name, "description": t.description, "schema": t.input_schema}
            for t in self._tools.values()
        ]

    def get_schemas(self) -> list[dict]:
        """Tool schemas in Anthropic tool_use format."""
        return [
            {
                "name": t.name,
                "description": t.description,
                "input_schema": t.input_schema,
            }
            for t in self._tools.values()
        ]

    def get_function_schemas(self) -> list[dict]:
        """Tool schemas in OpenAI function-calling format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": t.name,
                    "description": t.description,
                    "parameters": t.input_schema,
                },
            }
            for t in self._tools.values()
        ]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
