"""Per-app health from the resolved capability graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..project import Project
from ..registry.models import AppRegistry, ProviderRegistry
from ..report.models import Finding, FindingLocation, Severity
from .resolver import CapabilityGraph, resolve


@dataclass
class DoctorResult:
    apps: dict[str, dict[str, Any]] = field(default_factory=dict)
    findings: list[Finding] = field(default_factory=list)

    def status_of(self, app_id: str) -> str:
        return self.apps[app_id]["status"]


def missing_provider_findings(project: Project, graph: CapabilityGraph, include_optional: bool = True) -> list[Finding]:
    findings = []
    for resolved in graph.apps:
        manifest = project.relative(resolved.app.manifest_path)
        for consume in resolved.consumes:
            if not consume.missing:
                continue
            if consume.consume.required:
                findings.append(
                    Finding(
                        rule_key="CAPGATE.CONSUME.REQUIRED.MISSING_PROVIDER",
                        severity=Severity.BLOCKER,
                        message=f'Required capability "{consume.capability_id}" has no provider.',
                        location=FindingLocation(manifest, None, consume.capability_id),
                    )
                )
            elif include_optional:
                findings.append(
                    Finding(
                        rule_key="CAPGATE.CONSUME.OPTIONAL.MISSING_PROVIDER",
                        severity=Severity.WARNING,
                        message=f'Optional capability "{consume.capability_id}" has no provider.',
                        location=FindingLocation(manifest, None, consume.capability_id),
                    )
                )
    return findings


class Doctor:
    """Resolve the graph and report what each app is missing."""

    def __init__(self, project: Project, apps: AppRegistry, providers: ProviderRegistry):
        self.project = project
        self.apps = apps
        self.providers = providers

    def run(self) -> DoctorResult:
        graph = resolve(self.apps, self.providers)
        result = DoctorResult()

        result.findings.extend(issue.to_finding() for issue in self.providers.issues)
        result.findings.extend(missing_provider_findings(self.project, graph))

        for resolved in graph.apps:
            result.apps[resolved.app.app_id] = {
                "status": resolved.status,
                "missingRequired": resolved.missing_required,
                "missingOptional": resolved.missing_optional,
                "degraded": resolved.degraded,
            }
        return result


def render_apps_markdown(result: DoctorResult) -> str:
    """Per-app status table appended to the doctor report."""
    lines = [
        "## Apps",
        "",
        "| App | Status | Missing required | Missing optional | Degraded |",
        "| --- | --- | --- | --- | --- |",
    ]
    for app_id in sorted(result.apps):
        entry = result.apps[app_id]
        lines.append(
            f"| {app_id} | {entry['status']} | {', '.join(entry['missingRequired']) or '-'} | "
            f"{', '.join(entry['missingOptional']) or '-'} | {', '.join(entry['degraded']) or '-'} |"
        )
    if not result.apps:
        lines.append("| - | - | - | - | - |")
    lines.append("")
    return "\n".join(lines)
