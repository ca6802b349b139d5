"""Entities must inherit the runtime base class."""

from __future__ import annotations

from ..report.models import Finding, FindingLocation, Severity
from .entities import BASE_ENTITY, ENTITY_INTERFACE, ENTITY_MIXIN, entity_classes
from .source import SourceFile, SourceIndex

RULE_KEY = "CAPGATE.ENTITY.BASE_REQUIRED"


class BaseClassScanner:
    def scan(self, index: SourceIndex) -> list[Finding]:
        findings = []
        for source in index.boundary_files():
            findings.extend(self.scan_file(source))
        return findings

    def scan_file(self, source: SourceFile) -> list[Finding]:
        findings = []
        for entity in entity_classes(source.tree, source.imports):
            if BASE_ENTITY in entity.bases:
                continue
            class_name = f"{source.module}.{entity.node.name}" if source.module else entity.node.name
            location = FindingLocation(source.rel, entity.node.lineno, class_name)

            if ENTITY_INTERFACE in entity.bases and ENTITY_MIXIN in entity.bases:
                findings.append(
                    Finding(
                        rule_key=RULE_KEY,
                        severity=Severity.WARNING,
                        message=f'Entity "{class_name}" uses the mixin-based base; prefer BaseEntity.',
                        location=location,
                        details={"primary": f"{class_name}|mixin-exception"},
                        hint="Inherit capgate.runtime.BaseEntity.",
                    )
                )
                continue

            findings.append(
                Finding(
                    rule_key=RULE_KEY,
                    severity=Severity.BLOCKER,
                    message=f'Entity "{class_name}" must inherit BaseEntity.',
                    location=location,
                    details={"primary": f"{class_name}|missing-base"},
                    hint="Inherit capgate.runtime.BaseEntity.",
                )
            )
        return findings
