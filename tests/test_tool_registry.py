"""Tests for the LoongClaw ToolRegistry.

Covers registration, lookup, schema export in both function-calling
formats, and the built-in tool set.
"""

import pytest

from loongclaw.tools.builtin import ALL_BUILTIN_TOOLS, register_all_builtins
from loongclaw.tools.models import ToolCategory, ToolDefinition
from loongclaw.tools.registry import RegisteredTool, ToolRegistry


def _make_tool(name: str = "test_tool", **kwargs) -> RegisteredTool:
    return RegisteredTool(
        definition=ToolDefinition(
            name=name,
            description=f"Test tool: {name}",
            input_schema={"type": "object", "properties": {"x": {"type": "string"}}, "required": ["x"]},
        ),
        handler=lambda args, context: args["x"],
        **kwargs,
    )


class TestRegisteredTool:
    def test_properties(self):
        tool = _make_tool("echo")
        assert tool.name == "echo"
        assert tool.description == "Test tool: echo"
        assert tool.input_schema["required"] == ["x"]
        assert tool.category == ToolCategory.UTILITY

    def test_requires_name_and_description(self):
        with pytest.raises(ValueError):
            RegisteredTool(ToolDefinition(name="", description="x"), handler=lambda a, c: None)
        with pytest.raises(ValueError):
            RegisteredTool(ToolDefinition(name="x", description=""), handler=lambda a, c: None)

    def test_file_system_tool_needs_path_argument(self):
        with pytest.raises(ValueError, match="path argument"):
            _make_tool("reader", category=ToolCategory.FILE_SYSTEM)

    def test_definition_required(self):
        assert _make_tool().definition.required == ["x"]


class TestToolRegistry:
    def test_register_and_get(self):
        registry = ToolRegistry()
        tool = _make_tool("a")
        registry.register(tool)
        assert registry.get("a") is tool
        assert "a" in registry
        assert len(registry) == 1

    def test_get_unknown(self):
        assert ToolRegistry().get("nope") is None

    def test_duplicate_rejected(self):
        registry = ToolRegistry()
        registry.register(_make_tool("a"))
        with pytest.raises(ValueError, match="already registered"):
            registry.register(_make_tool("a"))

    def test_wrong_type_rejected(self):
        with pytest.raises(TypeError):
            ToolRegistry().register({"name": "a"})  # type: ignore[arg-type]

    def test_list_tools(self):
        registry = ToolRegistry()
        registry.register_all([_make_tool("a"), _make_tool("b")])
        listed = registry.list_tools()
        assert [t["name"] for t in listed] == ["a", "b"]
        assert listed[0]["schema"]["required"] == ["x"]
        assert listed[0]["description"] == "Test tool: a"

    def test_anthropic_schemas(self):
        registry = ToolRegistry()
        registry.register(_make_tool("a"))
        schema = registry.get_schemas()[0]
        assert set(schema) == {"name", "description", "input_schema"}

    def test_function_schemas(self):
        registry = ToolRegistry()
        registry.register(_make_tool("a"))
        schema = registry.get_function_schemas()[0]
        assert schema["type"] == "function"
        assert schema["function"]["name"] == "a"
        assert schema["function"]["parameters"]["required"] == ["x"]


class TestBuiltinTools:
    def test_builtin_names(self):
        registry = ToolRegistry()
        register_all_builtins(registry)
        assert [t.name for t in registry.get_all()] == [
            "read_file", "write_file", "list_directory", "exec_shell", "get_current_time",
        ]

    def test_categories(self):
        categories = {t.name: t.category for t in ALL_BUILTIN_TOOLS}
        assert categories["read_file"] == ToolCategory.FILE_SYSTEM
        assert categories["write_file"] == ToolCategory.FILE_SYSTEM
        assert categories["list_directory"] == ToolCategory.FILE_SYSTEM
        assert categories["exec_shell"] == ToolCategory.SHELL
        assert categories["get_current_time"] == ToolCategory.UTILITY

    def test_required_parameters(self):
        required = {t.name: t.definition.required for t in ALL_BUILTIN_TOOLS}
        assert required["read_file"] == ["path"]
        assert required["write_file"] == ["path", "content"]
        assert required["list_directory"] == []
        assert required["exec_shell"] == ["command"]

    def test_exec_shell_approval_enum(self):
        shell = next(t for t in ALL_BUILTIN_TOOLS if t.name == "exec_shell")
        assert shell.input_schema["properties"]["approval"]["enum"] == ["once", "remember_7d"]
