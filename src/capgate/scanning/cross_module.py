"""Direct symbol references across app boundaries.

An app may only use its own symbols, global components and third-party
code. A global component may not use any app symbol at all. Everything
else has to go through a capability.
"""

from __future__ import annotations

from typing import Optional

from ..project import Project
from ..registry.models import AppRegistry
from ..report.models import Finding, FindingLocation, Severity
from .references import FIXABLE_KINDS, Reference, ReferenceCollector
from .source import SourceFile, SourceIndex

CROSSING = "CAPGATE.APP.CROSSING"
GLOBAL_REFERENCES_APP = "CAPGATE.GLOBAL_COMPONENT.REFERENCES_APP"


class CrossModuleScanner:
    def __init__(self, project: Project, apps: AppRegistry):
        self.project = project
        self.apps = apps

    def scan(self, index: SourceIndex) -> list[Finding]:
        findings = []
        for source in index.boundary_files():
            findings.extend(self.scan_file(source))
        return findings

    def scan_file(self, source: SourceFile) -> list[Finding]:
        folder = self.project.app_folder_of(source.path)
        is_global = folder is None and self.project.is_global(source.path)
        if folder is None and not is_global:
            return []

        findings = []
        for ref in ReferenceCollector.collect(source.tree, source.imports):
            target = self.project.app_folder_of_symbol(ref.fqn)
            if target is None:
                continue
            if folder is not None:
                if target != folder:
                    findings.append(self._crossing(source, folder, ref))
            else:
                findings.append(self._global(source, ref))
        return findings

    def _app_label(self, folder: str) -> str:
        app = self.apps.by_folder(folder)
        return app.app_id if app is not None else folder

    def _crossing(self, source: SourceFile, folder: str, ref: Reference) -> Finding:
        fixable = ref.kind in FIXABLE_KINDS
        return Finding(
            rule_key=CROSSING,
            severity=Severity.BLOCKER,
            message=f"App {self._app_label(folder)} references {ref.fqn}.",
            location=FindingLocation(source.rel, ref.line, ref.fqn),
            details={"primary": f"{ref.fqn}|{ref.kind}", "kind": ref.kind},
            hint="Consume a capability of the other app instead of importing it directly.",
            autofix_available=fixable,
            autofix_fixer="crossing" if fixable else None,
        )

    def _global(self, source: SourceFile, ref: Reference) -> Finding:
        return Finding(
            rule_key=GLOBAL_REFERENCES_APP,
            severity=Severity.BLOCKER,
            message=f"Global component references {ref.fqn}.",
            location=FindingLocation(source.rel, ref.line, ref.fqn),
            details={"primary": ref.fqn, "kind": ref.kind},
            hint="Global components must not depend on apps.",
        )


def split_primary(finding: Finding) -> tuple[str, Optional[str]]:
    """(fqn, kind) of a crossing finding."""
    fqn, _, kind = finding.primary.rpartition("|")
    if not fqn:
        return kind, None
    return fqn, kind
