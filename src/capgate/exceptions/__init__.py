"""Exception hierarchy for capgate."""

from .base import CapgateError, ExitCode
from .errors import (
    ConfigurationError,
    InternalError,
    InvalidConfigError,
    LockHeldError,
    ManifestError,
    ProjectStateError,
    UserError,
)
from .fix import FixBlocked

__all__ = [
    "CapgateError",
    "ExitCode",
    "UserError",
    "ProjectStateError",
    "InternalError",
    "ConfigurationError",
    "InvalidConfigError",
    "LockHeldError",
    "ManifestError",
    "FixBlocked",
]
