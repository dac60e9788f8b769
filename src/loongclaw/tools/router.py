"""
LoongClaw Safe Tool Router

The execution pipeline between the model's tool_use blocks and actual
side effects. Every call makes one pass through:

1. Registry lookup → unknown tools fail with NotFoundError
2. Parameter check → missing required parameters fail before any side effect
3. Gate by tool category:
   - FILE_SYSTEM: the target path must lie inside a sandbox root
   - SHELL: timeout check, character filter, then tier classification; BLACK is refused,
     GRAY needs a cached approval or an approval flag on the call
4. Handler invocation; unexpected exceptions become ToolExecutionError

call() raises structured LoongClawError subclasses; execute() is the
agent-loop form and turns every failure into an error ToolResult.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

from loongclaw.exceptions import (
    AccessDeniedError,
    CommandFailedError,
    ConfirmationRequiredError,
    LoongClawError,
    NotFoundError,
    ParameterValidationError,
    PolicyRefusedError,
    ToolExecutionError,
)
from loongclaw.logging import get_logger
from loongclaw.tools.approvals import ApprovalMode
from loongclaw.tools.context import ToolContext
from loongclaw.tools.models import (
    ToolCallRecord,
    ToolCallRequest,
    ToolCategory,
    ToolResult,
    render_result,
)
from loongclaw.tools.policy import CommandTier, check_command_syntax, classify_command
from loongclaw.tools.registry import RegisteredTool, ToolRegistry
from loongclaw.tools.validation import parse_timeout_ms, validate_arguments

logger = get_logger("loongclaw.tools")

ToolCallObserver = Callable[[ToolCallRecord], Any]


class SafeToolRouter:
    """Routes tool calls through validation, sandbox and command policy.

    The registry and the context are fixed for the router's lifetime;
    the approval store is re-read on every gray-tier call.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        context: ToolContext,
        observers: list[ToolCallObserver] | None = None,
    ):
        self._registry = registry
        self._context = context
        self._observers: list[ToolCallObserver] = list(observers or [])

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def context(self) -> ToolContext:
        return self._context

    def add_observer(self, observer: ToolCallObserver) -> None:
        """Register a callback that receives a ToolCallRecord after every call."""
        self._observers.append(observer)

    def list_tools(self) -> list[dict[str, Any]]:
        return self._registry.list_tools()

    async def call(self, name: str, args: dict[str, Any] | None = None) -> Any:
        """Run one tool call through the pipeline.

        Returns the handler's result.

        Raises:
            NotFoundError, ParameterValidationError, AccessDeniedError,
            PolicyRefusedError, ToolExecutionError.
        """
        tool_input = args if args is not None else {}
        start = time.monotonic()
        try:
            result = await self._dispatch(name, tool_input)
        except LoongClawError as e:
            await self._finish(name, tool_input, start, error=e)
            raise
        except Exception as e:
            wrapped = ToolExecutionError(name, str(e) or type(e).__name__)
            await self._finish(name, tool_input, start, error=wrapped)
            raise wrapped from e

        await self._finish(name, tool_input, start, result=result)
        return result

    async def execute(self, request: ToolCallRequest) -> ToolResult:
        """Agent-loop form of call(): never raises.

        Failures come back as is_error results so the model can see why a
        call was refused and adjust.
        """
        try:
            result = await self.call(request.tool_name, request.tool_input)
        except LoongClawError as e:
            return ToolResult(
                tool_use_id=request.tool_use_id,
                content=_describe_error(e),
                is_error=True,
            )
        return ToolResult(tool_use_id=request.tool_use_id, content=render_result(result))

    async def _dispatch(self, name: str, args: Any) -> Any:
        tool = self._registry.get(name)
        if tool is None:
            raise NotFoundError(f"tool not found: {name}", target=name)

        validated = validate_arguments(tool.input_schema, args)

        if tool.category == ToolCategory.FILE_SYSTEM:
            self._check_path(tool, validated)
        elif tool.category == ToolCategory.SHELL:
            validated = await self._gate_command(validated)

        return await self._invoke(tool, validated)

    def _check_path(self, tool: RegisteredTool, args: dict[str, Any]) -> None:
        raw = args.get(tool.path_argument or "path")
        if raw is None:
            raw = "."
        if not isinstance(raw, str):
            raise ParameterValidationError(
                f"malformed parameter: {tool.path_argument} must be a string",
                parameter=tool.path_argument,
            )

        resolved = self._context.resolve_path(raw)
        if not self._context.sandbox.is_allowed(resolved):
            logger.warning(
                "Path outside sandbox refused",
                extra={"tool_name": tool.name, "path": str(resolved), "event_type": "ACCESS_DENIED"},
            )
            raise AccessDeniedError(raw, details={"resolved": str(resolved)})

    async def _gate_command(self, args: dict[str, Any]) -> dict[str, Any]:
        raw = args.get("command")
        if not isinstance(raw, str):
            raise ParameterValidationError(
                "malformed parameter: command must be a string", parameter="command"
            )

        timeout_ms = parse_timeout_ms(args.get("timeout"), self._context.default_timeout_ms)
        command = check_command_syntax(raw)
        tier = classify_command(command)
        logger.debug(
            "Command classified", extra={"tier": tier.value, "event_type": "COMMAND_CLASSIFIED"}
        )

        if tier == CommandTier.BLACK:
            logger.warning(
                "Black-tier command refused", extra={"tier": tier.value, "event_type": "POLICY_REFUSED"}
            )
            raise PolicyRefusedError(
                "black-listed command refused; run it yourself if you really need it",
                command=command,
                tier=tier.value,
            )

        if tier == CommandTier.GRAY:
            await self._confirm_gray(command, args.get("approval"))

        return {**args, "command": command, "timeout": timeout_ms}

    async def _confirm_gray(self, command: str, approval: Any) -> None:
        approvals = self._context.approvals
        signature = approvals.signature(command, self._context.cwd)

        if await approvals.lookup(signature) is not None:
            return

        mode = ApprovalMode.parse(approval)
        if mode == ApprovalMode.REMEMBER_7D:
            await approvals.grant(signature)
        elif mode == ApprovalMode.ONCE:
            logger.info(
                "Gray-tier command confirmed once",
                extra={"signature": signature, "event_type": "APPROVAL_ONCE"},
            )
        else:
            raise ConfirmationRequiredError(command)

    async def _invoke(self, tool: RegisteredTool, args: dict[str, Any]) -> Any:
        try:
            result = tool.handler(args, self._context)
            if asyncio.iscoroutine(result):
                result = await result
        except LoongClawError:
            raise
        except Exception as e:
            raise ToolExecutionError(tool.name, str(e) or type(e).__name__) from e
        return result

    async def _finish(
        self,
        name: str,
        tool_input: Any,
        start: float,
        result: Any = None,
        error: LoongClawError | None = None,
    ) -> None:
        duration_ms = round((time.monotonic() - start) * 1000, 2)
        if error is None:
            logger.info(
                "Tool call finished",
                extra={"tool_name": name, "duration_ms": duration_ms, "event_type": "TOOL_CALL_EXECUTED"},
            )
        else:
            logger.info(
                "Tool call failed: %s", error.message,
                extra={"tool_name": name, "duration_ms": duration_ms, "event_type": "TOOL_CALL_ERROR"},
            )

        if not self._observers:
            return

        record = ToolCallRecord(
            tool_name=name,
            tool_input=tool_input if isinstance(tool_input, dict) else {},
            success=error is None,
            result=result,
            error=error.message if error else None,
            error_type=type(error).__name__ if error else None,
            duration_ms=duration_ms,
        )
        for observer in self._observers:
            try:
                outcome = observer(record)
                if asyncio.iscoroutine(outcome):
                    await outcome
            except Exception:
                logger.exception("Tool call observer failed", extra={"tool_name": name})


def _describe_error(error: LoongClawError) -> str:
    """Render a pipeline failure for the model, including captured output."""
    text = f"[{type(error).__name__}] {error.message}"
    if isinstance(error, CommandFailedError):
        if error.stdout:
            text += f"\nstdout:\n{error.stdout}"
        if error.stderr:
            text += f"\nstderr:\n{error.stderr}"
    return text
