"""
LoongClaw Controlled Execution Environment

Two concerns live here:

- Path confinement: file tools may only touch paths inside one of the
  configured sandbox roots. Paths are normalized ('.' and '..' removed)
  but symlinks are not followed.
- Command execution: shell commands run as a child process with an
  explicit argv (no shell interpreter) in its own process group. A hard
  wall-clock timeout kills the whole group, and output is capped in bytes.

Note: this is NOT an OS-level sandbox. The child runs as the same user
with the same filesystem and network access.
"""

from __future__ import annotations

import asyncio
import os
import signal
from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import BaseModel, Field

from loongclaw.logging import get_logger

logger = get_logger("loongclaw.sandbox")

KILL_GRACE_SECONDS = 2.0  # bound on draining pipes after a timeout kill


def _normalize(path: str | os.PathLike[str]) -> str:
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def is_path_allowed(candidate: str | os.PathLike[str], roots: Iterable[str | os.PathLike[str]]) -> bool:
    """Check whether candidate equals or lies beneath one of roots.

    Matching is done on the path-separator boundary, so '/workspace-evil'
    does not match the root '/workspace'. Never raises.
    """
    try:
        resolved = _normalize(candidate)
        for root in roots:
            root_resolved = _normalize(root)
            if resolved == root_resolved:
                return True
            prefix = root_resolved if root_resolved.endswith(os.sep) else root_resolved + os.sep
            if resolved.startswith(prefix):
                return True
    except (TypeError, ValueError, OSError):
        return False
    return False


class PathSandbox:
    """Confines file tools to a fixed set of directory roots.

    Relative tool paths are resolved against the workspace root. The root
    set is frozen at construction.
    """

    def __init__(
        self,
        workspace_root: str | os.PathLike[str],
        allowed_roots: Iterable[str | os.PathLike[str]] | None = None,
    ):
        self._workspace_root = Path(_normalize(workspace_root))
        roots = allowed_roots if allowed_roots is not None else [self._workspace_root]
        self._roots: tuple[str, ...] = tuple(_normalize(r) for r in roots)

    @property
    def workspace_root(self) -> Path:
        return self._workspace_root

    @property
    def roots(self) -> tuple[str, ...]:
        return self._roots

    def resolve(self, relative: str | None) -> Path:
        """Resolve a tool-supplied path against the workspace root.

        An absolute path stays absolute (and will usually be outside the
        sandbox).
        """
        return Path(_normalize(self._workspace_root / (relative or ".")))

    def is_allowed(self, path: str | os.PathLike[str]) -> bool:
        return is_path_allowed(path, self._roots)

    def relative_to_workspace(self, path: Path) -> str:
        """Display form of a resolved path: relative to the workspace when possible."""
        try:
            return path.relative_to(self._workspace_root).as_posix() or "."
        except ValueError:
            return str(path)


class CommandOutput(BaseModel):
    """Captured result of a finished (or killed) child process."""
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    timed_out: bool = False
    truncated: bool = False

    @property
    def success(self) -> bool:
        return not self.timed_out and self.exit_code == 0


class RunnerConfig(BaseModel):
    """Limits applied to every command the runner starts."""
    max_output_bytes: int = Field(default=65536, ge=1024, le=16_777_216)
    cwd: str | None = None


class CommandRunner:
    """Runs an argv with a timeout, capturing both output streams.

    Failure to start (binary missing, permission denied) is reported as
    exit code 127/126 with the OS error on stderr, the way a shell would.
    """

    def __init__(self, config: RunnerConfig | None = None):
        self._config = config or RunnerConfig()

    @property
    def cwd(self) -> str:
        return self._config.cwd or os.getcwd()

    async def run(self, argv: Sequence[str], timeout_ms: int) -> CommandOutput:
        cfg = self._config
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                cwd=self.cwd,
                start_new_session=True,
            )
        except FileNotFoundError as e:
            return CommandOutput(stderr=f"{argv[0]}: command not found ({e})", exit_code=127)
        except PermissionError as e:
            return CommandOutput(stderr=f"{argv[0]}: permission denied ({e})", exit_code=126)

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(),
                timeout=timeout_ms / 1000,
            )
            timed_out = False
        except asyncio.TimeoutError:
            self._kill(proc)
            timed_out = True
            logger.warning(
                "Command killed after %dms timeout", timeout_ms,
                extra={"event_type": "COMMAND_TIMEOUT"},
            )
            try:
                stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=KILL_GRACE_SECONDS)
            except asyncio.TimeoutError:
                # a descendant left the process group and still holds the pipes
                stdout, stderr = b"", b""
        except asyncio.CancelledError:
            self._kill(proc)
            raise

        out, out_cut = self._decode(stdout, cfg.max_output_bytes)
        err, err_cut = self._decode(stderr, cfg.max_output_bytes)
        return CommandOutput(
            stdout=out,
            stderr=err,
            exit_code=proc.returncode,
            timed_out=timed_out,
            truncated=out_cut or err_cut,
        )

    @staticmethod
    def _kill(proc: asyncio.subprocess.Process) -> None:
        """Kill the child and everything it started (its process group)."""
        try:
            if os.name == "posix":
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()
        except ProcessLookupError:
            pass

    @staticmethod
    def _decode(data: bytes | None, limit: int) -> tuple[str, bool]:
        data = data or b""
        if len(data) > limit:
            text = data[:limit].decode("utf-8", errors="replace")
            return text + f"\n[TRUNCATED at {limit} bytes]", True
        return data.decode("utf-8", errors="replace"), False
