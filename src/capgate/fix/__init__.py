"""Autofixers, their run log and the project write lock."""

from .crossing import CrossingFixer, FixOutcome
from .dispatcher import FIXERS, exit_code, run_fix
from .lock import WriteLock
from .run_log import FixRunContext, FixRunLogger, generate_run_id
from .selection import FixMode, FixSelection, resolve_mode

__all__ = [
    "CrossingFixer",
    "FIXERS",
    "FixMode",
    "FixOutcome",
    "FixRunContext",
    "FixRunLogger",
    "FixSelection",
    "WriteLock",
    "exit_code",
    "generate_run_id",
    "resolve_mode",
    "run_fix",
]
