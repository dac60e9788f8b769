"""
LoongClaw Custom Exceptions

Structured exception hierarchy for the LoongClaw agent.
All LoongClaw-specific exceptions inherit from LoongClawError.

Exception hierarchy:
    LoongClawError
    +-- NotFoundError                 (unknown tool, missing file or directory)
    +-- ParameterValidationError      (missing or malformed tool arguments)
    |   +-- IllegalCommandError       (shell metacharacter or unsafe token)
    +-- AccessDeniedError             (path outside the sandbox roots)
    +-- PolicyRefusedError            (black-tier command, unconfirmed gray command)
    |   +-- ConfirmationRequiredError (gray command with no approval on record)
    +-- ToolExecutionError            (handler failure)
    |   +-- CommandFailedError        (non-zero exit or timeout)
    +-- PersistenceError              (approval file unreadable/unwritable)
    +-- ProviderError                 (LLM provider failure)
    +-- ConfigurationError            (invalid settings)
"""

from __future__ import annotations


class LoongClawError(Exception):
    """Base exception for all LoongClaw errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(LoongClawError):
    """Raised for an unknown tool name or a missing file/directory."""

    def __init__(self, message: str, target: str | None = None, details: dict | None = None):
        super().__init__(message, details={"target": target, **(details or {})})
        self.target = target


class ParameterValidationError(LoongClawError):
    """Raised when a tool call is missing a required parameter or is malformed.

    Detected before any side effect takes place.
    """

    def __init__(self, message: str, parameter: str | None = None, details: dict | None = None):
        super().__init__(message, details={"parameter": parameter, **(details or {})})
        self.parameter = parameter


class IllegalCommandError(ParameterValidationError):
    """Raised when a shell command contains characters outside the safe set."""

    def __init__(self, message: str, command: str, details: dict | None = None):
        super().__init__(message, parameter="command", details={"command": command, **(details or {})})
        self.command = command


class AccessDeniedError(LoongClawError):
    """Raised when a file tool targets a path outside every sandbox root."""

    def __init__(self, path: str, details: dict | None = None):
        super().__init__("path access denied", details={"path": path, **(details or {})})
        self.path = path


class PolicyRefusedError(LoongClawError):
    """Raised when the command policy refuses to run a shell command."""

    def __init__(self, message: str, command: str, tier: str, details: dict | None = None):
        super().__init__(
            message,
            details={"command": command, "tier": tier, **(details or {})},
        )
        self.command = command
        self.tier = tier


class ConfirmationRequiredError(PolicyRefusedError):
    """Raised for a gray-tier command with no approval flag and no cached approval.

    The caller may retry with approval="once" or approval="remember_7d".
    """

    def __init__(self, command: str, details: dict | None = None):
        super().__init__(
            "confirmation required: retry with approval=once or approval=remember_7d",
            command=command,
            tier="gray",
            details=details,
        )


class ToolExecutionError(LoongClawError):
    """Raised when a tool handler fails.

    Includes the tool name for debugging.
    """

    def __init__(self, tool_name: str, message: str, details: dict | None = None):
        super().__init__(
            f'Tool "{tool_name}" execution failed: {message}',
            details={"tool_name": tool_name, **(details or {})},
        )
        self.tool_name = tool_name


class CommandFailedError(ToolExecutionError):
    """Raised when a shell command exits non-zero or hits its timeout.

    Carries the captured output so the model can see what went wrong.
    """

    def __init__(
        self,
        tool_name: str,
        command: str,
        stdout: str = "",
        stderr: str = "",
        exit_code: int | None = None,
        timed_out: bool = False,
    ):
        if timed_out:
            reason = f"command timed out: {command}"
        else:
            reason = f"command exited with code {exit_code}: {command}"
        super().__init__(
            tool_name,
            reason,
            details={
                "command": command,
                "stdout": stdout,
                "stderr": stderr,
                "exit_code": exit_code,
                "timed_out": timed_out,
            },
        )
        self.command = command
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.timed_out = timed_out


class PersistenceError(LoongClawError):
    """Raised when the approval file cannot be read or written.

    Never escapes the approval store; losing a cached approval only
    costs the user a re-confirmation.
    """

    def __init__(self, path: str, message: str, details: dict | None = None):
        super().__init__(
            f"Approval store '{path}' error: {message}",
            details={"path": path, **(details or {})},
        )
        self.path = path


class ProviderError(LoongClawError):
    """Base exception for LLM provider errors."""

    def __init__(self, provider_name: str, message: str, details: dict | None = None):
        super().__init__(
            f"Provider '{provider_name}' error: {message}",
            details={"provider_name": provider_name, **(details or {})},
        )
        self.provider_name = provider_name


class ConfigurationError(LoongClawError):
    """Raised when settings cannot be loaded or are invalid."""

    pass
