"""Shared test fixtures for the LoongClaw test suite."""

from collections.abc import Sequence

import pytest

from loongclaw.tools.approvals import ApprovalStore
from loongclaw.tools.builtin import register_all_builtins
from loongclaw.tools.context import ToolContext
from loongclaw.tools.registry import ToolRegistry
from loongclaw.tools.router import SafeToolRouter
from loongclaw.tools.sandbox import CommandOutput, PathSandbox

START_MS = 1_700_000_000_000


class FakeClock:
    """Settable epoch-millisecond clock for the approval store."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeRunner:
    """Records every argv instead of starting a process."""

    def __init__(self, cwd: str, output: CommandOutput | None = None):
        self._cwd = cwd
        self.output = output or CommandOutput(stdout="ok\n", exit_code=0)
        self.calls: list[tuple[list[str], int]] = []

    @property
    def cwd(self) -> str:
        return self._cwd

    async def run(self, argv: Sequence[str], timeout_ms: int) -> CommandOutput:
        self.calls.append((list(argv), timeout_ms))
        return self.output


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def approval_file(tmp_path):
    return tmp_path / "sessions" / "command-approvals.json"


@pytest.fixture
def approval_store(approval_file, clock):
    return ApprovalStore(approval_file, clock=clock)


@pytest.fixture
def fake_runner(workspace):
    return FakeRunner(str(workspace))


@pytest.fixture
def tool_context(workspace, approval_store, fake_runner):
    return ToolContext(
        sandbox=PathSandbox(workspace),
        approvals=approval_store,
        runner=fake_runner,
        default_timeout_ms=30000,
    )


@pytest.fixture
def router(tool_context):
    registry = ToolRegistry()
    register_all_builtins(registry)
    return SafeToolRouter(registry, tool_context)
