"""Error kinds surfaced to the CLI, one per exit code."""

from pathlib import Path
from typing import Any

from .base import CapgateError, ExitCode


class UserError(CapgateError):
    """Invalid command line input."""

    exit_code = ExitCode.USER_ERROR


class ProjectStateError(CapgateError):
    """Missing or invalid project artifacts, lock contention, plan drift."""

    exit_code = ExitCode.PROJECT_STATE_ERROR


class InternalError(CapgateError):
    """A state the tool should never reach."""

    exit_code = ExitCode.INTERNAL_ERROR


class ConfigurationError(UserError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class LockHeldError(ProjectStateError):
    """Raised when another process holds the project write lock."""

    def __init__(self, lock_path: Path):
        super().__init__("Write lock already held", details={"lock": str(lock_path)})
        self.lock_path = lock_path


class ManifestError(ProjectStateError):
    """Raised when an app manifest cannot be read or is structurally invalid."""

    def __init__(self, message: str, path: Path | None = None):
        details = {"path": str(path)} if path is not None else None
        super().__init__(message, details=details)
        self.path = path
