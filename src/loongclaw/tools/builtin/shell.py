"""Shell command tool — exec_shell.

The router has already filtered the command's characters, classified
it and checked approvals. This handler only runs the tokenized argv
with a timeout and shapes the result.
"""

from __future__ import annotations

from typing import Any

from loongclaw.exceptions import CommandFailedError
from loongclaw.tools.context import ToolContext
from loongclaw.tools.models import ToolCategory, ToolDefinition
from loongclaw.tools.registry import RegisteredTool
from loongclaw.tools.validation import parse_timeout_ms

TOOL_NAME = "exec_shell"


async def _exec_shell(args: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    command: str = args["command"]
    timeout_ms = parse_timeout_ms(args.get("timeout"), context.default_timeout_ms)

    output = await context.runner.run(command.split(" "), timeout_ms)
    if not output.success:
        raise CommandFailedError(
            TOOL_NAME,
            command,
            stdout=output.stdout,
            stderr=output.stderr,
            exit_code=output.exit_code,
            timed_out=output.timed_out,
        )

    return {
        "stdout": output.stdout,
        "stderr": output.stderr or None,
        "exitCode": 0,
    }


EXEC_SHELL_TOOL = RegisteredTool(
    definition=ToolDefinition(
        name=TOOL_NAME,
        description=(
            "Run a single command (no pipes, redirection or chaining). "
            "Green/white commands run directly; gray commands need approval "
            "'once' or 'remember_7d'; black commands are refused."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "The command to run",
                },
                "approval": {
                    "type": "string",
                    "enum": ["once", "remember_7d"],
                    "description": "Confirmation for gray commands: once, or remember_7d",
                },
                "timeout": {
                    "type": "number",
                    "description": "Timeout in milliseconds (default: 30000)",
                    "default": 30000,
                },
            },
            "required": ["command"],
        },
    ),
    handler=_exec_shell,
    category=ToolCategory.SHELL,
)
