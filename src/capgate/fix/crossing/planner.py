"""
Planning of crossing fixes.

Every selected crossing finding ends in exactly one of two states: fixable
(with a target describing what apply will generate and rewrite) or blocked
(with the reason). Planning only reads the project.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ...exceptions import FixBlocked
from ...logging_config import get_logger
from ...project import Project
from ...registry.models import App, AppRegistry
from ...registry.slug import snake_case
from ...report.identity import FindingIdGenerator
from ...report.models import Finding
from ...scanning.cross_module import split_primary
from ...scanning.references import FIXABLE_KINDS, INSTANTIATION, TYPE_HINT, USE_IMPORT, ReferenceCollector
from ...scanning.source import SourceFile, SourceIndex
from ..selection import FixSelection
from .dto import DtoPlanner, map_signatures
from .models import ENTITY_RULE, BridgeNames, EntityTarget, PlanItem, ServiceTarget
from .signatures import extract_called_methods, extract_signatures, locate_class

logger = get_logger(__name__)

ENTITY_SEGMENT = "entity"
ENTITY_KINDS = (USE_IMPORT, TYPE_HINT)


@dataclass(frozen=True)
class EntityPath:
    base: str  # dotted package above the entity segment
    name: str

    @property
    def interface_module(self) -> str:
        return f"{self.base}.contracts.{snake_case(self.name)}_interface"


def parse_entity_fqn(fqn: str, apps_namespace: str) -> Optional[EntityPath]:
    """Split ``<apps>.<app>.<component>.entity.<module>.<Entity>``.

    Returns None for names that do not follow the entity path convention.
    """
    prefix = apps_namespace + "."
    if not fqn.startswith(prefix):
        return None
    parts = fqn[len(prefix) :].split(".")
    if ENTITY_SEGMENT not in parts:
        return None
    index = parts.index(ENTITY_SEGMENT)
    if index < 1 or index >= len(parts) - 1:
        return None
    name = parts[-1]
    if not name[:1].isupper():
        return None
    return EntityPath(base=".".join([apps_namespace, *parts[:index]]), name=name)


@dataclass
class _ServiceRequest:
    """A crossing headed for the service bridge, waiting for its method surface."""

    finding_id: str
    finding: Finding
    consumer: Path
    consumer_app: App
    provider_app: App
    provider_fqn: str
    source: SourceFile


class CrossingPlanner:
    def __init__(self, project: Project, index: SourceIndex, apps: AppRegistry, ids: FindingIdGenerator):
        self.project = project
        self.index = index
        self.apps = apps
        self.ids = ids

    def plan(self, findings: list[Finding]) -> list[PlanItem]:
        slots: list[Union[PlanItem, _ServiceRequest]] = [self._classify(f) for f in findings]

        grouped: dict[str, list[_ServiceRequest]] = {}
        for slot in slots:
            if isinstance(slot, _ServiceRequest):
                grouped.setdefault(slot.provider_fqn, []).append(slot)

        planned: dict[str, PlanItem] = {}
        for requests in grouped.values():
            for request, item in zip(requests, self._plan_service(requests)):
                planned[request.finding_id] = item

        return [planned[slot.finding_id] if isinstance(slot, _ServiceRequest) else slot for slot in slots]

    # ── Per finding ────────────────────────────────────────────────

    def _classify(self, finding: Finding) -> Union[PlanItem, _ServiceRequest]:
        finding_id = self.ids.generate(finding)
        fqn, kind = split_primary(finding)
        if not fqn or kind is None:
            return PlanItem.blocked(finding_id, "Missing crossing details.")
        if kind not in FIXABLE_KINDS:
            return PlanItem.blocked(finding_id, f'Reference kind "{kind}" is not autofixable.')

        file = finding.location.file if finding.location is not None else None
        consumer = self.project.absolute(file) if file else None
        if consumer is None or not consumer.is_file():
            return PlanItem.blocked(finding_id, "Consumer file not found.")

        consumer_folder = self.project.app_folder_of(consumer)
        consumer_app = self.apps.by_folder(consumer_folder) if consumer_folder else None
        if consumer_app is None:
            return PlanItem.blocked(finding_id, "Consumer app could not be resolved.")

        provider_folder = self.project.app_folder_of_symbol(fqn)
        if provider_folder is None:
            return PlanItem.blocked(finding_id, "Provider app could not be resolved.")
        provider_app = self.apps.by_folder(provider_folder)
        if provider_app is None:
            return PlanItem.blocked(finding_id, "Provider app not found.")

        source = self.index.get(consumer)
        if source is None:
            return PlanItem.blocked(finding_id, "Consumer file could not be parsed.")

        entity = parse_entity_fqn(fqn, self.project.config.apps_namespace)
        allowed = ENTITY_KINDS if entity is not None else FIXABLE_KINDS
        blocking = self._blocking_reference(source, fqn, allowed)
        if blocking is not None:
            return PlanItem.blocked(finding_id, blocking)

        rel = self.ids.normalize_path(file)
        if entity is not None:
            if kind == INSTANTIATION:
                return PlanItem.blocked(finding_id, "Entity references are only fixable in type hints.")
            target = EntityTarget(
                finding_id=finding_id,
                finding=finding,
                consumer=consumer,
                consumer_app=consumer_app,
                provider_app=provider_app,
                entity_fqn=fqn,
                entity_name=entity.name,
                interface_module=entity.interface_module,
            )
            return PlanItem(
                finding_id=finding_id,
                fixable=True,
                summary=f"{rel} -> {target.interface_fqn} ({ENTITY_RULE})",
                rule_key=ENTITY_RULE,
                target=target,
            )

        if locate_class(self.index, fqn) is None:
            return PlanItem.blocked(finding_id, "Provider class file not found.")

        return _ServiceRequest(
            finding_id=finding_id,
            finding=finding,
            consumer=consumer,
            consumer_app=consumer_app,
            provider_app=provider_app,
            provider_fqn=fqn,
            source=source,
        )

    def _blocking_reference(self, source: SourceFile, fqn: str, allowed: tuple[str, ...]) -> Optional[str]:
        """Reason a rewrite of *source* would leave *fqn* behind, if any."""
        for ref in ReferenceCollector.collect(source.tree, source.imports):
            if ref.fqn == fqn and ref.kind in allowed:
                continue
            if ref.fqn == fqn:
                if ref.kind == INSTANTIATION and allowed is ENTITY_KINDS:
                    return "Entity references are only fixable in type hints."
                return f'Consumer also uses {fqn} as "{ref.kind}" on line {ref.line}, which is not autofixable.'
            if ref.fqn.startswith(fqn + "."):
                return f"Consumer uses {ref.fqn} on line {ref.line}, which is not autofixable."
        return None

    # ── Per provider class ─────────────────────────────────────────

    def _plan_service(self, requests: list[_ServiceRequest]) -> list[PlanItem]:
        """Shared contract for every consumer of one provider class."""
        first = requests[0]
        fqn = first.provider_fqn
        names = BridgeNames.build(self.project, first.provider_app, fqn)

        methods: list[str] = []
        seen_consumers: set[Path] = set()
        for request in requests:
            if request.consumer in seen_consumers:
                continue
            seen_consumers.add(request.consumer)
            methods.extend(m for m in extract_called_methods(request.source, fqn) if m not in methods)

        try:
            provider_source, cls = locate_class(self.index, fqn)
            dtos = DtoPlanner(self.project, self.index, first.provider_app, names)
            signatures = map_signatures(extract_signatures(provider_source, cls, methods), dtos)
        except FixBlocked as e:
            logger.debug(f"Provider {fqn} blocked: {e.reason}")
            return [PlanItem.blocked(r.finding_id, e.reason) for r in requests]

        items = []
        for request in requests:
            target = ServiceTarget(
                finding_id=request.finding_id,
                finding=request.finding,
                consumer=request.consumer,
                consumer_app=request.consumer_app,
                provider_app=request.provider_app,
                provider_fqn=fqn,
                names=names,
                signatures=tuple(signatures),
                dtos=tuple(dtos.specs),
            )
            rel = self.ids.normalize_path(request.finding.location.file)
            items.append(
                PlanItem(
                    finding_id=request.finding_id,
                    fixable=True,
                    summary=f"{rel} -> {names.contract_fqn} ({names.capability})",
                    target=target,
                )
            )
        return items


def render_plan(mode: str, selection: FixSelection, items: list[PlanItem], fixer: str = "crossing") -> str:
    """Markdown plan; identical inputs always render identical text."""
    fixable = [i for i in items if i.fixable]
    blocked = [i for i in items if not i.fixable]

    lines = [
        "# capgate Fix Plan",
        "",
        f"Fixer: {fixer}",
        f"Mode: {mode}",
        f"Selection: {json.dumps(selection.to_dict(), separators=(',', ':'))}",
        "",
        "## Fixable",
        "",
    ]
    lines.extend(f"- [{i.finding_id}] ({i.rule_key}) {i.summary}" for i in fixable)
    if not fixable:
        lines.append("None.")
    lines.extend(["", "## Blockers", ""])
    lines.extend(f"- [{i.finding_id}] {i.reason}" for i in blocked)
    if not blocked:
        lines.append("None.")
    lines.extend(["", f"Blockers: {len(blocked)}", "Warnings: 0", ""])
    return "\n".join(lines)
