"""
Verifier: every structural and boundary check in one pass.

Checks never short-circuit. A project with a broken manifest still gets
its cross-module references scanned, and the caller receives the union of
all findings.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Optional

from .graph.doctor import missing_provider_findings
from .graph.resolver import CapabilityGraph, resolve
from .logging_config import get_logger
from .project import Project
from .registry.discovery import discover_apps, discover_components
from .registry.models import AppRegistry, Component, ProviderRegistry
from .registry.providers import discover_providers
from .registry.slug import is_valid_capability_id, is_valid_slug
from .report.identity import FindingIdGenerator
from .report.models import Finding, FindingLocation, Severity
from .scanning.assets import AssetCollisionScanner
from .scanning.base_class import BaseClassScanner
from .scanning.cross_module import CrossModuleScanner
from .scanning.forbidden import ForbiddenPatternScanner
from .scanning.persistence import PersistenceGate
from .scanning.source import SourceIndex

logger = get_logger(__name__)

CAPABILITY_EXAMPLE = "bridge.inventory.stock-service"


class Verifier:
    """Registries, scanners and checks over one project.

    Registries are built once on construction and shared with the doctor,
    the graph export and the fixers of the same run.
    """

    def __init__(
        self,
        project: Project,
        apps: Optional[AppRegistry] = None,
        providers: Optional[ProviderRegistry] = None,
    ):
        self.project = project
        self.index = SourceIndex(project)
        self.apps = apps if apps is not None else discover_apps(project)
        self.providers = providers if providers is not None else discover_providers(self.index)
        self.ids = FindingIdGenerator(project.root)

    def graph(self) -> CapabilityGraph:
        return resolve(self.apps, self.providers)

    def verify(self) -> list[Finding]:
        stages: list[tuple[str, Callable[[], list[Finding]]]] = [
            ("registry", self.registry_findings),
            ("component slugs", self.component_slug_findings),
            ("capability ids", self.capability_id_findings),
            ("cross-module", lambda: CrossModuleScanner(self.project, self.apps).scan(self.index)),
            (
                "forbidden patterns",
                lambda: ForbiddenPatternScanner(self.project.config.forbidden_types).scan(self.index),
            ),
            ("entity base class", lambda: BaseClassScanner().scan(self.index)),
            ("asset collisions", lambda: AssetCollisionScanner(self.project, self.apps).scan()),
            ("persistence", lambda: PersistenceGate(self.project, self.apps).scan(self.index)),
            ("providers", self.provider_findings),
            ("required capabilities", self.required_capability_findings),
        ]
        if self.project.config.report_unparsable:
            stages.append(("unparsable sources", self.unparsable_findings))

        findings: list[Finding] = []
        for name, stage in stages:
            stage_findings = self._dedupe(stage())
            logger.debug(f"{name}: {len(stage_findings)} findings")
            findings.extend(stage_findings)
        return findings

    def _dedupe(self, findings: list[Finding]) -> list[Finding]:
        """Collapse repeated findings of one stage to their first site."""
        seen: set[str] = set()
        unique = []
        for finding in findings:
            finding_id = self.ids.generate(finding)
            if finding_id in seen:
                continue
            seen.add(finding_id)
            unique.append(finding)
        return unique

    # ── Registry checks ────────────────────────────────────────────

    def registry_findings(self) -> list[Finding]:
        return [issue.to_finding() for issue in self.apps.issues]

    def provider_findings(self) -> list[Finding]:
        return [issue.to_finding() for issue in self.providers.issues]

    def required_capability_findings(self) -> list[Finding]:
        return missing_provider_findings(self.project, self.graph(), include_optional=False)

    def component_slug_findings(self) -> list[Finding]:
        findings = []
        for app in self.apps.apps:
            manifest = self.project.relative(app.manifest_path)
            findings.extend(self._slug_findings(app.components, manifest, f"app {app.app_id}"))
        components = discover_components(self.project.components_dir)
        findings.extend(
            self._slug_findings(components, self.project.relative(self.project.components_dir), "global components")
        )
        return findings

    def _slug_findings(self, components: tuple[Component, ...] | list[Component], scope_file: str, scope: str) -> list[Finding]:
        findings = []
        seen: dict[str, list[Component]] = defaultdict(list)
        for component in components:
            if not is_valid_slug(component.slug):
                findings.append(
                    Finding(
                        rule_key="CAPGATE.COMPONENT.SLUG.INVALID",
                        severity=Severity.BLOCKER,
                        message=f'Component "{component.name}" has invalid slug "{component.slug}".',
                        location=FindingLocation(self.project.relative(component.path), None, component.slug),
                    )
                )
            seen[component.slug].append(component)

        for slug, owners in seen.items():
            if len(owners) > 1:
                names = ", ".join(c.name for c in owners)
                findings.append(
                    Finding(
                        rule_key="CAPGATE.COMPONENT.SLUG.COLLISION",
                        severity=Severity.BLOCKER,
                        message=f'Component slug "{slug}" is used multiple times in {scope}: {names}.',
                        location=FindingLocation(scope_file, None, slug),
                    )
                )
        return findings

    def capability_id_findings(self) -> list[Finding]:
        findings = []

        def invalid(capability_id: str, location: FindingLocation) -> Finding:
            return Finding(
                rule_key="CAPGATE.CAPABILITY.ID.INVALID",
                severity=Severity.WARNING,
                message=f'Capability id "{capability_id}" must be namespaced (example: {CAPABILITY_EXAMPLE}).',
                location=location,
            )

        for app in self.apps.apps:
            manifest = self.project.relative(app.manifest_path)
            for consume in app.manifest.consumes:
                if not is_valid_capability_id(consume.capability_id):
                    findings.append(invalid(consume.capability_id, FindingLocation(manifest, None, consume.capability_id)))
            for provide in app.manifest.provides:
                if not is_valid_capability_id(provide.capability_id):
                    findings.append(invalid(provide.capability_id, FindingLocation(manifest, None, provide.capability_id)))

        for provider in self.providers.providers:
            if not is_valid_capability_id(provider.capability_id):
                findings.append(
                    invalid(provider.capability_id, FindingLocation(provider.file, provider.line, provider.class_name))
                )
        return findings

    # ── Source health ──────────────────────────────────────────────

    def unparsable_findings(self) -> list[Finding]:
        return [
            Finding(
                rule_key="CAPGATE.SOURCE.UNPARSABLE",
                severity=Severity.WARNING,
                message=f"File could not be parsed and was not scanned: {message}",
                location=FindingLocation(rel, None, None),
                details={"primary": "unparsable"},
            )
            for rel, message in sorted(self.index.unparsable.items())
        ]
