"""
Tests for the built-in tools.

Verifies:
- read_file / write_file / list_directory inside the workspace
- exec_shell result shape, with a fake runner and with real processes
- get_current_time output format and time zone handling
"""

import re
import sys
from datetime import datetime

import pytest

from loongclaw.exceptions import CommandFailedError, NotFoundError, ParameterValidationError
from loongclaw.tools.builtin.datetime_tool import _get_current_time
from loongclaw.tools.builtin import register_all_builtins
from loongclaw.tools.context import ToolContext
from loongclaw.tools.registry import ToolRegistry
from loongclaw.tools.router import SafeToolRouter
from loongclaw.tools.sandbox import CommandRunner, PathSandbox, RunnerConfig


class TestReadFile:
    @pytest.mark.asyncio
    async def test_read(self, router, workspace):
        (workspace / "docs").mkdir()
        (workspace / "docs" / "a.md").write_text("# Title\n", encoding="utf-8")
        assert await router.call("read_file", {"path": "docs/a.md"}) == "# Title\n"

    @pytest.mark.asyncio
    async def test_missing(self, router):
        with pytest.raises(NotFoundError, match="file not found"):
            await router.call("read_file", {"path": "missing.txt"})

    @pytest.mark.asyncio
    async def test_directory(self, router, workspace):
        (workspace / "sub").mkdir()
        with pytest.raises(ParameterValidationError, match="not a file"):
            await router.call("read_file", {"path": "sub"})

    @pytest.mark.asyncio
    async def test_encoding(self, router, workspace):
        (workspace / "latin.txt").write_bytes("café".encode("latin-1"))
        assert await router.call("read_file", {"path": "latin.txt", "encoding": "latin-1"}) == "café"

    @pytest.mark.asyncio
    async def test_unknown_encoding(self, router, workspace):
        (workspace / "a.txt").write_text("x")
        with pytest.raises(ParameterValidationError, match="unknown encoding"):
            await router.call("read_file", {"path": "a.txt", "encoding": "klingon"})


class TestWriteFile:
    @pytest.mark.asyncio
    async def test_write_creates_parents(self, router, workspace):
        result = await router.call("write_file", {"path": "out/nested/b.txt", "content": "héllo"})
        assert result == {"success": True, "path": "out/nested/b.txt", "bytes": len("héllo".encode())}
        assert (workspace / "out" / "nested" / "b.txt").read_text(encoding="utf-8") == "héllo"

    @pytest.mark.asyncio
    async def test_overwrite(self, router, workspace):
        (workspace / "a.txt").write_text("old")
        await router.call("write_file", {"path": "a.txt", "content": "new"})
        assert (workspace / "a.txt").read_text() == "new"

    @pytest.mark.asyncio
    async def test_empty_content_allowed(self, router, workspace):
        await router.call("write_file", {"path": "empty.txt", "content": ""})
        assert (workspace / "empty.txt").read_text() == ""

    @pytest.mark.asyncio
    async def test_non_string_content(self, router, workspace):
        with pytest.raises(ParameterValidationError, match="content must be a string"):
            await router.call("write_file", {"path": "a.txt", "content": {"k": 1}})
        assert not (workspace / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_directory_target(self, router, workspace):
        (workspace / "sub").mkdir()
        with pytest.raises(ParameterValidationError, match="is a directory"):
            await router.call("write_file", {"path": "sub", "content": "x"})


class TestListDirectory:
    @pytest.mark.asyncio
    async def test_sorted_entries(self, router, workspace):
        (workspace / "b.txt").write_text("")
        (workspace / "a_dir").mkdir()
        (workspace / "c.txt").write_text("")
        assert await router.call("list_directory", {}) == [
            {"name": "a_dir", "type": "directory"},
            {"name": "b.txt", "type": "file"},
            {"name": "c.txt", "type": "file"},
        ]

    @pytest.mark.asyncio
    async def test_subdirectory(self, router, workspace):
        (workspace / "src").mkdir()
        (workspace / "src" / "main.py").write_text("")
        assert await router.call("list_directory", {"path": "src"}) == [{"name": "main.py", "type": "file"}]

    @pytest.mark.asyncio
    async def test_file_target(self, router, workspace):
        (workspace / "a.txt").write_text("")
        with pytest.raises(ParameterValidationError, match="not a directory"):
            await router.call("list_directory", {"path": "a.txt"})


class TestExecShell:
    @pytest.mark.asyncio
    async def test_default_timeout_from_context(self, router, fake_runner):
        await router.call("exec_shell", {"command": "pwd"})
        assert fake_runner.calls[0][1] == 30000

    @pytest.mark.asyncio
    async def test_stderr_kept_on_success(self, router, fake_runner):
        fake_runner.output = fake_runner.output.model_copy(update={"stderr": "warning: x"})
        result = await router.call("exec_shell", {"command": "ls"})
        assert result["stderr"] == "warning: x"


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX commands")
class TestExecShellReal:
    @pytest.fixture
    def real_router(self, workspace, approval_store):
        registry = ToolRegistry()
        register_all_builtins(registry)
        context = ToolContext(
            sandbox=PathSandbox(workspace),
            approvals=approval_store,
            runner=CommandRunner(RunnerConfig(cwd=str(workspace))),
        )
        return SafeToolRouter(registry, context)

    @pytest.mark.asyncio
    async def test_echo(self, real_router):
        result = await real_router.call("exec_shell", {"command": "echo hello world"})
        assert result == {"stdout": "hello world\n", "stderr": None, "exitCode": 0}

    @pytest.mark.asyncio
    async def test_ls_sees_workspace(self, real_router, workspace):
        (workspace / "visible.txt").write_text("")
        result = await real_router.call("exec_shell", {"command": "ls"})
        assert "visible.txt" in result["stdout"]

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, real_router):
        with pytest.raises(CommandFailedError) as exc_info:
            await real_router.call("exec_shell", {"command": "ls no-such-entry"})
        assert exc_info.value.exit_code != 0
        assert exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_timeout(self, real_router):
        with pytest.raises(CommandFailedError) as exc_info:
            await real_router.call("exec_shell", {"command": "sleep 5", "timeout": 200})
        assert exc_info.value.timed_out


class TestGetCurrentTime:
    def test_shape(self, tool_context):
        result = _get_current_time({}, tool_context)
        assert set(result) == {"iso", "unix", "timezone", "formatted"}
        assert result["timezone"] == "Asia/Shanghai"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", result["iso"])
        assert re.fullmatch(r"\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}", result["formatted"])

    def test_unix_matches_iso(self, tool_context):
        result = _get_current_time({"timezone": "UTC"}, tool_context)
        iso = datetime.fromisoformat(result["iso"].replace("Z", "+00:00"))
        assert int(iso.timestamp()) == result["unix"]

    def test_formatted_in_zone(self, tool_context):
        result = _get_current_time({"timezone": "UTC"}, tool_context)
        iso = datetime.fromisoformat(result["iso"].replace("Z", "+00:00"))
        assert result["formatted"] == iso.strftime("%Y/%m/%d %H:%M:%S")

    def test_unknown_timezone(self, tool_context):
        with pytest.raises(ParameterValidationError, match="unknown timezone"):
            _get_current_time({"timezone": "Mars/Olympus_Mons"}, tool_context)
