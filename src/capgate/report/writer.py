"""JSON and Markdown finding reports under ``state/reports/<tool>/``."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..file_ops import write_json, write_text
from .identity import FindingIdGenerator
from .models import Finding, count_severities

SCHEMA_VERSION = "0.4"


def _escape_cell(text: str) -> str:
    return str(text).replace("|", "\\|").replace("\n", " ")


def _location(location: dict) -> str:
    text = location.get("file") or ""
    if location.get("line"):
        text += f":{location['line']}"
    return text


class ReportWriter:
    def __init__(self, ids: FindingIdGenerator):
        self.ids = ids

    def payload(self, tool: str, findings: list[Finding], extra: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        blockers, warnings = count_severities(findings)
        serialized = []
        for finding in findings:
            data = finding.to_dict(self.ids.generate(finding))
            data["location"] = self.ids.normalize_location(finding.location)
            serialized.append(data)

        payload: dict[str, Any] = {
            "header": {
                "tool": tool,
                "schemaVersion": SCHEMA_VERSION,
                "generatedAt": datetime.now(timezone.utc).isoformat(timespec="seconds"),
                "result": "blocked" if blockers else "ok",
                "summary": {"blockers": blockers, "warnings": warnings},
            },
            "findings": serialized,
        }
        payload.update(extra or {})
        return payload

    def write(
        self,
        tool: str,
        findings: list[Finding],
        directory: Path,
        extra: Optional[dict[str, Any]] = None,
        appendix: Optional[str] = None,
    ) -> tuple[Path, Path]:
        payload = self.payload(tool, findings, extra)
        json_path = directory / "latest.json"
        md_path = directory / "latest.md"
        write_json(json_path, payload)
        write_text(md_path, render_markdown(tool, payload, appendix))
        return json_path, md_path


def render_markdown(tool: str, payload: dict[str, Any], appendix: Optional[str] = None) -> str:
    header = payload["header"]
    summary = header["summary"]
    lines = [
        f"# capgate {tool} Report",
        "",
        f"Generated: {header['generatedAt']}",
        f"Result: {header['result']}",
        f"Summary: {summary['blockers']} blockers, {summary['warnings']} warnings",
        "",
        "## Findings",
        "",
    ]

    if not payload["findings"]:
        lines.extend(["No findings.", ""])
    else:
        lines.append("| Id | Severity | Rule | Message | Location |")
        lines.append("| --- | --- | --- | --- | --- |")
        for finding in payload["findings"]:
            lines.append(
                "| {} | {} | {} | {} | {} |".format(
                    finding.get("id", ""),
                    finding["severity"],
                    finding["ruleKey"],
                    _escape_cell(finding["message"]),
                    _escape_cell(_location(finding["location"])),
                )
            )
        lines.append("")

    if appendix:
        lines.append(appendix)

    return "\n".join(lines)
