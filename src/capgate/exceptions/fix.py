"""Fixer control flow."""

from .base import CapgateError


class FixBlocked(CapgateError):
    """A fix target cannot be applied safely.

    Raised deep inside a fixer and caught at the target boundary, where the
    reason is recorded in the plan instead of aborting the whole run.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
