"""Pipeline context shared by every tool handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from loongclaw.tools.approvals import ApprovalStore
from loongclaw.tools.sandbox import CommandRunner, PathSandbox


@dataclass(frozen=True)
class ToolContext:
    """Collaborators a handler may use: the sandbox, the approval store
    and the command runner, plus the default shell timeout."""

    sandbox: PathSandbox
    approvals: ApprovalStore = field(default_factory=ApprovalStore)
    runner: CommandRunner = field(default_factory=CommandRunner)
    default_timeout_ms: int = 30000

    @property
    def cwd(self) -> str:
        """Directory shell commands run in; part of every approval signature."""
        return self.runner.cwd

    def resolve_path(self, relative: str | None) -> Path:
        return self.sandbox.resolve(relative)
