"""Which findings a fix run works on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..exceptions import UserError
from ..report.identity import FindingIdGenerator
from ..report.models import Finding


class FixMode:
    DRY_RUN = "dry-run"
    APPLY = "apply"


def resolve_mode(dry_run: bool, apply: bool) -> str:
    if dry_run == apply:
        raise UserError("Specify exactly one of --dry-run or --apply.")
    return FixMode.DRY_RUN if dry_run else FixMode.APPLY


@dataclass(frozen=True)
class FixSelection:
    all: bool = True
    file: Optional[str] = None
    symbol: Optional[str] = None
    finding: Optional[str] = None

    @classmethod
    def from_options(
        cls,
        all_: bool = False,
        file: Optional[str] = None,
        symbol: Optional[str] = None,
        finding: Optional[str] = None,
    ) -> "FixSelection":
        """Build a selection from CLI flags; no flag at all selects everything."""
        given = [all_, bool(file), bool(symbol), bool(finding)]
        if sum(given) > 1:
            raise UserError("Use only one selection flag (--all, --file, --symbol, --finding).")
        if file:
            file = file.replace("\\", "/")
            if file.startswith("./"):
                file = file[2:]
            return cls(all=False, file=file)
        if symbol:
            return cls(all=False, symbol=symbol)
        if finding:
            return cls(all=False, finding=finding)
        return cls()

    def matches(self, finding: Finding, ids: FindingIdGenerator) -> bool:
        if self.all:
            return True
        if self.finding is not None:
            return ids.generate(finding) == self.finding
        location = ids.normalize_location(finding.location)
        if self.file is not None:
            return location["file"] == ids.normalize_path(self.file)
        if self.symbol is not None:
            return location["symbol"] == self.symbol
        return False

    def to_dict(self) -> dict:
        return {
            "all": self.all,
            "file": self.file,
            "symbol": self.symbol,
            "finding": self.finding,
        }
