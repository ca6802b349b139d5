"""Base exception for capgate."""

from enum import IntEnum
from typing import Dict, Optional


class ExitCode(IntEnum):
    """Process exit codes shared by every CLI command."""

    SUCCESS = 0
    INTERNAL_ERROR = 1
    USER_ERROR = 2
    PROJECT_STATE_ERROR = 3


class CapgateError(Exception):
    """Base exception for all capgate errors."""

    exit_code: ExitCode = ExitCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message
