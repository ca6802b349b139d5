"""Public asset targets and their collisions.

Publishing itself is out of scope; the verifier only needs to know that no
two asset sources would land in the same public directory.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path

from ..project import Project
from ..registry.discovery import discover_components
from ..registry.models import AppRegistry
from ..report.models import Finding, FindingLocation, Severity

RULE_KEY = "CAPGATE.PUBLIC.COLLISION"
RESOURCES_PUBLIC = ("resources", "public")


def _public_dir(path: Path) -> Path:
    return path.joinpath(*RESOURCES_PUBLIC)


def asset_targets(project: Project, apps: AppRegistry) -> dict[str, list[str]]:
    """Public target -> asset source directories (project-relative)."""
    targets: dict[str, list[str]] = defaultdict(list)

    for app in apps.apps:
        source = _public_dir(app.path)
        if source.is_dir():
            targets[f"{project.config.public_dir}/apps/{app.app_id}"].append(project.relative(source))
        for component in app.components:
            source = _public_dir(component.path)
            if source.is_dir():
                target = f"{project.config.public_dir}/apps/{app.app_id}/{component.slug}"
                targets[target].append(project.relative(source))

    for component in discover_components(project.components_dir):
        source = _public_dir(component.path)
        if source.is_dir():
            targets[f"{project.config.public_dir}/components/{component.slug}"].append(project.relative(source))

    return dict(targets)


class AssetCollisionScanner:
    def __init__(self, project: Project, apps: AppRegistry):
        self.project = project
        self.apps = apps

    def scan(self) -> list[Finding]:
        findings = []
        for target, sources in sorted(asset_targets(self.project, self.apps).items()):
            if len(sources) < 2:
                continue
            joined = ", ".join(sources)
            findings.append(
                Finding(
                    rule_key=RULE_KEY,
                    severity=Severity.BLOCKER,
                    message=f'Asset target "{target}" has multiple sources: {joined}',
                    location=FindingLocation(target, None, joined),
                    details={"primary": target, "sources": sources},
                )
            )
        return findings
