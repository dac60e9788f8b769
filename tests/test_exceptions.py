"""Tests for the LoongClaw exception hierarchy."""

import pytest

from loongclaw.exceptions import (
    AccessDeniedError,
    CommandFailedError,
    ConfigurationError,
    ConfirmationRequiredError,
    IllegalCommandError,
    LoongClawError,
    NotFoundError,
    ParameterValidationError,
    PersistenceError,
    PolicyRefusedError,
    ProviderError,
    ToolExecutionError,
)


class TestHierarchy:
    @pytest.mark.parametrize("cls", [
        NotFoundError,
        ParameterValidationError,
        IllegalCommandError,
        AccessDeniedError,
        PolicyRefusedError,
        ConfirmationRequiredError,
        ToolExecutionError,
        CommandFailedError,
        PersistenceError,
        ProviderError,
        ConfigurationError,
    ])
    def test_all_inherit_from_base(self, cls):
        assert issubclass(cls, LoongClawError)

    def test_illegal_command_is_validation_error(self):
        assert issubclass(IllegalCommandError, ParameterValidationError)

    def test_confirmation_is_refusal(self):
        assert issubclass(ConfirmationRequiredError, PolicyRefusedError)

    def test_command_failed_is_execution_error(self):
        assert issubclass(CommandFailedError, ToolExecutionError)

    def test_catch_all_with_base(self):
        with pytest.raises(LoongClawError):
            raise AccessDeniedError("/etc/passwd")


class TestMessagesAndDetails:
    def test_base(self):
        error = LoongClawError("boom", details={"k": 1})
        assert str(error) == "boom"
        assert error.message == "boom"
        assert error.details == {"k": 1}

    def test_base_default_details(self):
        assert LoongClawError("x").details == {}

    def test_not_found(self):
        error = NotFoundError("tool not found: x", target="x")
        assert error.target == "x"
        assert error.details["target"] == "x"

    def test_access_denied(self):
        error = AccessDeniedError("../x", details={"resolved": "/x"})
        assert error.message == "path access denied"
        assert error.path == "../x"
        assert error.details == {"path": "../x", "resolved": "/x"}

    def test_illegal_command(self):
        error = IllegalCommandError("command contains illegal characters", command="ls;")
        assert error.parameter == "command"
        assert error.details["command"] == "ls;"

    def test_confirmation_required(self):
        error = ConfirmationRequiredError("git push")
        assert error.tier == "gray"
        assert error.command == "git push"
        assert "approval=once" in error.message
        assert "approval=remember_7d" in error.message

    def test_tool_execution(self):
        error = ToolExecutionError("read_file", "disk on fire")
        assert str(error) == 'Tool "read_file" execution failed: disk on fire'
        assert error.tool_name == "read_file"

    def test_command_failed_exit(self):
        error = CommandFailedError("exec_shell", "ls x", stdout="", stderr="no such file", exit_code=2)
        assert "exited with code 2" in error.message
        assert error.details["stderr"] == "no such file"
        assert error.details["timed_out"] is False

    def test_command_failed_timeout(self):
        error = CommandFailedError("exec_shell", "sleep 5", timed_out=True)
        assert "timed out" in error.message
        assert error.timed_out

    def test_persistence(self):
        error = PersistenceError("/tmp/a.json", "write failed")
        assert "/tmp/a.json" in error.message
        assert error.path == "/tmp/a.json"

    def test_provider(self):
        error = ProviderError("ClaudeProvider", "rate limited")
        assert error.message == "Provider 'ClaudeProvider' error: rate limited"
        assert error.provider_name == "ClaudeProvider"
