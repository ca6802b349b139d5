"""Finding data model shared by registries, scanners, doctor and fixers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


class Severity:
    BLOCKER = "BLOCKER"
    WARNING = "WARNING"


@dataclass(frozen=True)
class FindingLocation:
    file: Optional[str] = None  # project-relative, forward slashes
    line: Optional[int] = None
    symbol: Optional[str] = None


@dataclass(frozen=True)
class Finding:
    rule_key: str  # "CAPGATE.APP.CROSSING", ...
    severity: str  # Severity.BLOCKER | Severity.WARNING
    message: str
    location: Optional[FindingLocation] = None
    details: dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None
    autofix_available: bool = False
    autofix_fixer: Optional[str] = None  # "crossing"

    @property
    def primary(self) -> str:
        """Fingerprint used for identity; defaults to the message."""
        value = self.details.get("primary")
        return str(value) if value is not None else self.message

    @property
    def is_blocker(self) -> bool:
        return self.severity == Severity.BLOCKER

    def to_dict(self, finding_id: Optional[str] = None) -> dict[str, Any]:
        location = self.location or FindingLocation()
        data: dict[str, Any] = {}
        if finding_id is not None:
            data["id"] = finding_id
        data.update(
            {
                "ruleKey": self.rule_key,
                "severity": self.severity,
                "message": self.message,
                "location": {
                    "file": location.file,
                    "line": location.line,
                    "symbol": location.symbol,
                },
                "details": dict(self.details),
                "hint": self.hint,
                "autofix": {
                    "available": self.autofix_available,
                    "fixer": self.autofix_fixer,
                },
            }
        )
        return data


def count_severities(findings: list[Finding]) -> tuple[int, int]:
    """Return (blockers, warnings)."""
    blockers = sum(1 for f in findings if f.severity == Severity.BLOCKER)
    warnings = sum(1 for f in findings if f.severity == Severity.WARNING)
    return blockers, warnings
