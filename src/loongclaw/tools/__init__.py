"""
LoongClaw Tool Gatekeeper

Every tool call from the model passes through the SafeToolRouter
before anything touches the machine:

    Model (tool_use) → SafeToolRouter → {validator, sandbox | command policy,
                                         approval store} → handler

Components:
- ToolRegistry / RegisteredTool: named tools with schema, handler and category
- validate_arguments: required-parameter presence check
- PathSandbox / is_path_allowed: confines file tools to the sandbox roots
- classify_command / check_command_syntax: green/white/gray/black command tiers
- ApprovalStore: remembered gray-tier approvals with a 7-day expiry
- CommandRunner: time-bounded child-process execution
- SafeToolRouter: the execution pipeline
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loongclaw.tools.approvals import ApprovalMode, ApprovalRecord, ApprovalStore
from loongclaw.tools.context import ToolContext
from loongclaw.tools.models import (
    ToolCallRecord,
    ToolCallRequest,
    ToolCategory,
    ToolDefinition,
    ToolResult,
)
from loongclaw.tools.policy import CommandTier, check_command_syntax, classify_command
from loongclaw.tools.registry import RegisteredTool, ToolRegistry
from loongclaw.tools.router import SafeToolRouter
from loongclaw.tools.sandbox import CommandRunner, PathSandbox, RunnerConfig, is_path_allowed
from loongclaw.tools.validation import validate_arguments

if TYPE_CHECKING:
    from loongclaw.config import Settings


def create_tool_router(settings: Settings) -> SafeToolRouter:
    """Build a router with every built-in tool, wired from settings."""
    from loongclaw.tools.builtin import register_all_builtins

    registry = ToolRegistry()
    register_all_builtins(registry)
    context = ToolContext(
        sandbox=PathSandbox(settings.workspace_dir, settings.allowed_paths),
        approvals=ApprovalStore(settings.approval_file),
        runner=CommandRunner(RunnerConfig(max_output_bytes=settings.max_output_bytes)),
        default_timeout_ms=settings.shell_timeout_ms,
    )
    return SafeToolRouter(registry=registry, context=context)


__all__ = [
    "ApprovalMode",
    "ApprovalRecord",
    "ApprovalStore",
    "CommandRunner",
    "CommandTier",
    "PathSandbox",
    "RegisteredTool",
    "RunnerConfig",
    "SafeToolRouter",
    "ToolCallRecord",
    "ToolCallRequest",
    "ToolCategory",
    "ToolContext",
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    "check_command_syntax",
    "classify_command",
    "create_tool_router",
    "is_path_allowed",
    "validate_arguments",
]
