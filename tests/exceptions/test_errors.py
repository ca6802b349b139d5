"""Tests for the exception hierarchy and exit codes."""

from pathlib import Path

from capgate.exceptions import (
    CapgateError,
    ConfigurationError,
    ExitCode,
    FixBlocked,
    InternalError,
    InvalidConfigError,
    LockHeldError,
    ManifestError,
    ProjectStateError,
    UserError,
)


class TestExitCodes:
    """Each error kind maps onto one process exit code."""

    def test_values(self):
        assert [int(c) for c in ExitCode] == [0, 1, 2, 3]

    def test_user_errors(self):
        assert UserError("x").exit_code == ExitCode.USER_ERROR
        assert ConfigurationError("x").exit_code == ExitCode.USER_ERROR
        assert InvalidConfigError("k", "v", "r").exit_code == ExitCode.USER_ERROR

    def test_project_state_errors(self):
        assert ProjectStateError("x").exit_code == ExitCode.PROJECT_STATE_ERROR
        assert LockHeldError(Path("l")).exit_code == ExitCode.PROJECT_STATE_ERROR
        assert ManifestError("bad").exit_code == ExitCode.PROJECT_STATE_ERROR

    def test_internal_errors(self):
        assert InternalError("x").exit_code == ExitCode.INTERNAL_ERROR
        assert CapgateError("x").exit_code == ExitCode.INTERNAL_ERROR


class TestMessages:
    """Test error message formatting."""

    def test_details_are_appended(self):
        error = LockHeldError(Path("var/lock/capgate.lock"))
        assert str(error) == "Write lock already held (lock=var/lock/capgate.lock)"

    def test_invalid_config_attributes(self):
        error = InvalidConfigError("verbosity", "loud", "expected quiet, normal or verbose")
        assert error.key == "verbosity"
        assert error.details["reason"] == "expected quiet, normal or verbose"

    def test_manifest_error_without_path(self):
        assert str(ManifestError("bad")) == "bad"

    def test_fix_blocked_reason(self):
        error = FixBlocked("Provider class file not found.")
        assert error.reason == str(error)
        assert isinstance(error, CapgateError)
