"""Human-oriented review report grouped by rule."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path

from ..file_ops import write_text
from .identity import FindingIdGenerator
from .links import LinkBuilder
from .models import Finding


class ReviewWriter:
    def __init__(self, ids: FindingIdGenerator, links: LinkBuilder):
        self.ids = ids
        self.links = links

    def render(self, findings: list[Finding]) -> str:
        blockers = [f for f in findings if f.is_blocker]
        warnings = [f for f in findings if not f.is_blocker]
        groups: dict[str, list[Finding]] = defaultdict(list)
        for finding in findings:
            groups[finding.rule_key].append(finding)

        lines = [
            "# capgate Review Report",
            "",
            "## Summary",
            "",
            f"- Blockers: {len(blockers)}",
            f"- Warnings: {len(warnings)}",
            "",
        ]

        for title, selected in (("Blockers", blockers), ("Warnings", warnings)):
            lines.extend([f"## {title}", ""])
            if not selected:
                lines.append("None.")
            for finding in selected:
                lines.append(f"- [{self.ids.generate(finding)}] {finding.rule_key}: {finding.message}")
            lines.append("")

        lines.extend(["## Findings", ""])
        if not groups:
            lines.extend(["No findings.", ""])

        for rule_key in sorted(groups):
            lines.extend([f"### {rule_key}", ""])
            for finding in groups[rule_key]:
                finding_id = self.ids.generate(finding)
                location = self.ids.normalize_location(finding.location)
                lines.append(f"- [{finding_id}] {finding.severity} {finding.message}")
                if location["file"]:
                    lines.append(f"  File: {self.links.format(location['file'], location['line'])}")
                if location["symbol"]:
                    lines.append(f"  Symbol: {location['symbol']}")
                lines.append(f"  Hint: {finding.hint or finding.message}")
                if finding.autofix_available and finding.autofix_fixer:
                    lines.append(f"  Autofix: capgate fix {finding.autofix_fixer} --finding={finding_id}")
            lines.append("")

        return "\n".join(lines)

    def write(self, findings: list[Finding], path: Path) -> Path:
        write_text(path, self.render(findings))
        return path
