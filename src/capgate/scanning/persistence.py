"""Persistence conventions: entity location, table naming, global components.

Entities live at ``apps/<app>/<component>/entity/<module>.py`` and every
table they declare, join tables included, is named
``app_<appId>__<componentSlug>__<rest>``. Global components own no
persistence at all.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Optional

from ..project import Project
from ..registry.models import AppRegistry
from ..registry.slug import slugify, table_token
from ..report.models import Finding, FindingLocation, Severity
from .entities import entity_classes, join_tables
from .source import SourceFile, SourceIndex

ENTITY_LOCATION = "CAPGATE.PERSISTENCE.ENTITY_LOCATION"
TABLE_NAME_MISSING = "CAPGATE.PERSISTENCE.TABLE_NAME_MISSING"
TABLE_PREFIX = "CAPGATE.PERSISTENCE.TABLE_PREFIX"
GLOBAL_COMPONENT = "CAPGATE.PERSISTENCE.GLOBAL_COMPONENT"

ENTITY_DIR = "entity"
MIGRATIONS_DIR = "migrations"


def table_prefix(app_id: str, component_slug: str) -> str:
    return f"app_{table_token(app_id)}__{table_token(component_slug)}__"


class PersistenceGate:
    def __init__(self, project: Project, apps: AppRegistry):
        self.project = project
        self.apps = apps

    def scan(self, index: SourceIndex) -> list[Finding]:
        findings = []
        for source in index.files(self.project.apps_dir):
            findings.extend(self.scan_app_file(source))
        for source in index.files(self.project.components_dir):
            findings.extend(self.scan_global_file(source))
        findings.extend(self.scan_global_dirs())
        return findings

    def _rel_parts(self, path: Path) -> tuple[str, ...]:
        return path.resolve().relative_to(self.project.apps_dir.resolve()).parts

    def _app_id(self, folder: str) -> str:
        app = self.apps.by_folder(folder)
        return app.app_id if app is not None else folder

    def _expected_prefix(self, parts: tuple[str, ...]) -> Optional[str]:
        if len(parts) != 4 or parts[2] != ENTITY_DIR:
            return None
        return table_prefix(self._app_id(parts[0]), slugify(parts[1]))

    def scan_app_file(self, source: SourceFile) -> list[Finding]:
        parts = self._rel_parts(source.path)
        prefix = self._expected_prefix(parts)
        findings = []

        for entity in entity_classes(source.tree, source.imports):
            class_name = f"{source.module}.{entity.node.name}"
            location = FindingLocation(source.rel, entity.node.lineno, class_name)

            if prefix is None:
                findings.append(
                    Finding(
                        rule_key=ENTITY_LOCATION,
                        severity=Severity.BLOCKER,
                        message=f'Entity "{class_name}" must live in <app>/<component>/{ENTITY_DIR}/.',
                        location=location,
                        details={"primary": f"{class_name}|location"},
                    )
                )

            if entity.table_name is None:
                findings.append(
                    Finding(
                        rule_key=TABLE_NAME_MISSING,
                        severity=Severity.BLOCKER,
                        message=f'Entity "{class_name}" must declare an explicit __tablename__.',
                        location=location,
                        details={"primary": f"{class_name}|table"},
                    )
                )
            elif prefix is not None and not entity.table_name.startswith(prefix):
                findings.append(self._prefix_finding(source, entity.node.lineno, entity.table_name, prefix))

        if prefix is not None:
            for call, name in join_tables(source.tree, source.imports):
                if name is None:
                    findings.append(
                        Finding(
                            rule_key=TABLE_NAME_MISSING,
                            severity=Severity.BLOCKER,
                            message="Join table must declare an explicit name.",
                            location=FindingLocation(source.rel, call.lineno, None),
                            details={"primary": f"join-table|{ast.unparse(call)}"},
                        )
                    )
                elif not name.startswith(prefix):
                    findings.append(self._prefix_finding(source, call.lineno, name, prefix))
        return findings

    def _prefix_finding(self, source: SourceFile, line: int, table: str, prefix: str) -> Finding:
        return Finding(
            rule_key=TABLE_PREFIX,
            severity=Severity.BLOCKER,
            message=f'Table "{table}" must be prefixed with "{prefix}".',
            location=FindingLocation(source.rel, line, table),
            details={"primary": f"{table}|{prefix}"},
        )

    def scan_global_file(self, source: SourceFile) -> list[Finding]:
        findings = []
        for entity in entity_classes(source.tree, source.imports):
            class_name = f"{source.module}.{entity.node.name}"
            findings.append(
                Finding(
                    rule_key=GLOBAL_COMPONENT,
                    severity=Severity.BLOCKER,
                    message=f'Global component declares entity "{class_name}".',
                    location=FindingLocation(source.rel, entity.node.lineno, class_name),
                    details={"primary": f"{class_name}|entity"},
                    hint="Move persistence into an app component.",
                )
            )
        return findings

    def scan_global_dirs(self) -> list[Finding]:
        root = self.project.components_dir
        if not root.is_dir():
            return []
        findings = []
        for directory in sorted(p for p in root.rglob("*") if p.is_dir()):
            if directory.name not in (ENTITY_DIR, MIGRATIONS_DIR):
                continue
            if any(part.startswith(".") or part == "__pycache__" for part in directory.relative_to(root).parts):
                continue
            rel = self.project.relative(directory)
            findings.append(
                Finding(
                    rule_key=GLOBAL_COMPONENT,
                    severity=Severity.BLOCKER,
                    message=f'Global component must not contain a "{directory.name}" directory.',
                    location=FindingLocation(rel, None, None),
                    details={"primary": f"dir|{directory.name}"},
                    hint="Move persistence into an app component.",
                )
            )
        return findings
