"""
LoongClaw Built-in Tools

The fixed tool set offered to the model: file read/write, directory
listing, shell execution and a clock.
"""

from loongclaw.tools.registry import ToolRegistry

from loongclaw.tools.builtin.datetime_tool import GET_CURRENT_TIME_TOOL
from loongclaw.tools.builtin.file_ops import LIST_DIRECTORY_TOOL, READ_FILE_TOOL, WRITE_FILE_TOOL
from loongclaw.tools.builtin.shell import EXEC_SHELL_TOOL

ALL_BUILTIN_TOOLS = [
    READ_FILE_TOOL,
    WRITE_FILE_TOOL,
    LIST_DIRECTORY_TOOL,
    EXEC_SHELL_TOOL,
    GET_CURRENT_TIME_TOOL,
]


def register_all_builtins(registry: ToolRegistry) -> None:
    """Register all built-in tools with the given registry."""
    registry.register_all(ALL_BUILTIN_TOOLS)
