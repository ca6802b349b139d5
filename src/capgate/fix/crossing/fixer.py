"""
Crossing fixer: plan, log and apply bridge fixes.

Apply works target by target. Each target renders and checks everything it
is about to write before touching the disk, so a blocker found while
preparing a target leaves that target's files as they were.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ... import file_ops
from ...exceptions import ExitCode, FixBlocked, UserError
from ...logging_config import get_logger
from ...project import Project
from ...scanning.cross_module import CROSSING
from ...verifier import Verifier
from ..lock import WriteLock
from ..run_log import FixRunLogger
from ..selection import FixMode, FixSelection
from .codegen import render_adapter, render_contract, render_dto, render_entity_interface, render_noop
from .manifest_update import upsert_consumes, upsert_provides
from .models import BRIDGE_MARKER, ENTITY_RULE, EntityTarget, PlanItem, ServiceTarget
from .planner import CrossingPlanner, render_plan
from .rewriter import ConsumerRewrite

logger = get_logger(__name__)

FIXER_NAME = "crossing"
PACKAGE_INIT = "__init__.py"


@dataclass
class FixOutcome:
    run_id: str
    result: str  # "ok" | "blocked"
    exit_code: int
    plan: str
    items: list[PlanItem] = field(default_factory=list)
    changed_files: list[str] = field(default_factory=list)
    blockers: int = 0
    warnings: int = 0


def _missing_dirs(directory: Path) -> list[Path]:
    """Directories a ``mkdir(parents=True)`` of *directory* would create, outermost first."""
    missing = []
    current = directory
    while not current.exists():
        missing.append(current)
        current = current.parent
    return list(reversed(missing))


class _Changes:
    """Writes of one apply, recorded as project-relative paths."""

    def __init__(self, project: Project):
        self.project = project
        self.files: list[str] = []
        self.created_interfaces: list[dict] = []

    def write(self, path: Path, content: str) -> None:
        if file_ops.write_text(path, content):
            self.files.append(self.project.relative(path))
            logger.info(f"Wrote {self.project.relative(path)}")

    def ensure_package(self, directory: Path) -> None:
        init = directory / PACKAGE_INIT
        if not init.exists():
            self.write(init, "")


class CrossingFixer:
    """Replace direct cross-app references with generated bridges."""

    name = FIXER_NAME

    def __init__(self, project: Project, prune_unresolvable: bool = False, verifier: Optional[Verifier] = None):
        self.project = project
        self.prune_unresolvable = prune_unresolvable
        self.verifier = verifier or Verifier(project)
        self.run_log = FixRunLogger(project)

    def select(self, selection: FixSelection) -> list:
        findings = [
            f
            for f in self.verifier.verify()
            if f.rule_key == CROSSING
            and f.autofix_available
            and selection.matches(f, self.verifier.ids)
        ]
        if selection.finding is not None and len(findings) != 1:
            raise UserError("Finding selection did not resolve to exactly one crossing.")
        return findings

    def plan(self, selection: FixSelection) -> list[PlanItem]:
        planner = CrossingPlanner(self.project, self.verifier.index, self.verifier.apps, self.verifier.ids)
        return planner.plan(self.select(selection))

    def run(self, mode: str, selection: FixSelection) -> FixOutcome:
        items = self.plan(selection)
        blockers = sum(1 for item in items if not item.fixable)
        plan = render_plan(mode, selection, items, fixer=self.name)
        context = self.run_log.start(self.name, mode, plan, selection)
        logger.info(f"Planned {len(items) - blockers} fixable and {blockers} blocked crossing(s)")

        if blockers:
            self.run_log.finish(context, self.name, mode, "blocked", [], blockers, 0)
            return FixOutcome(context.run_id, "blocked", ExitCode.PROJECT_STATE_ERROR, plan, items, blockers=blockers)

        if mode == FixMode.DRY_RUN:
            self.run_log.finish(context, self.name, mode, "ok", [], 0, 0)
            return FixOutcome(context.run_id, "ok", ExitCode.SUCCESS, plan, items)

        changes = _Changes(self.project)
        blocked: list[dict] = []
        with WriteLock(self.project.lock_path):
            for item in items:
                try:
                    self.apply(item, changes)
                except FixBlocked as e:
                    logger.warning(f"Fix {item.finding_id} blocked: {e.reason}")
                    blocked.append({"id": item.finding_id, "reason": e.reason})

        result = "blocked" if blocked else "ok"
        self.run_log.finish(
            context,
            self.name,
            mode,
            result,
            changes.files,
            len(blocked),
            0,
            created_interfaces=changes.created_interfaces,
            blocked=blocked,
        )
        return FixOutcome(
            context.run_id,
            result,
            ExitCode.PROJECT_STATE_ERROR if blocked else ExitCode.SUCCESS,
            plan,
            items,
            changed_files=list(dict.fromkeys(changes.files)),
            blockers=len(blocked),
        )

    def apply(self, item: PlanItem, changes: _Changes) -> None:
        target = item.target
        if isinstance(target, EntityTarget):
            self._apply_entity(target, changes)
        elif isinstance(target, ServiceTarget):
            self._apply_service(target, changes)

    # ── Service bridge ─────────────────────────────────────────────

    def _check_compatible(self, path: Path, content: str) -> None:
        if path.exists() and file_ops.read_text(path).strip() != content.strip():
            raise FixBlocked(f"File {self.project.relative(path)} already exists with different content.")

    def _apply_service(self, target: ServiceTarget, changes: _Changes) -> None:
        names = target.names
        bridge = names.bridge_dir
        if bridge.exists() and not bridge.is_dir():
            raise FixBlocked("Bridge path exists and is not a directory.")
        if bridge.is_dir() and not (bridge / BRIDGE_MARKER).is_file():
            raise FixBlocked(f"Bridge directory missing {BRIDGE_MARKER} marker.")

        generated = {
            self.project.file_for_module(names.contract_module): render_contract(names, target.signatures),
            self.project.file_for_module(names.noop_module): render_noop(names, target.signatures),
            self.project.file_for_module(names.adapter_module): render_adapter(target),
        }
        for dto in target.dtos:
            generated[self.project.file_for_module(dto.module)] = render_dto(dto)
        for path, content in generated.items():
            self._check_compatible(path, content)

        rewrite = ConsumerRewrite(
            self.project,
            target.consumer,
            target.provider_fqn,
            names.contract_fqn,
            names.contract,
            self.prune_unresolvable,
        )
        consumer_source = rewrite.run(inject_as=names.property_name)
        consumer_changed = consumer_source != file_ops.read_text(target.consumer)
        provides = upsert_provides(target.provider_app.manifest_path, names.capability, names.contract_fqn)
        consumes = upsert_consumes(target.consumer_app.manifest_path, names.capability, names.contract_fqn)

        adapter_dir = self.project.file_for_module(names.adapter_module).parent
        new_adapter_dirs = _missing_dirs(adapter_dir)
        new_bridge_dirs = _missing_dirs(bridge)

        # Nothing below may raise FixBlocked
        for directory in new_bridge_dirs:
            directory.mkdir(parents=True, exist_ok=True)
            changes.ensure_package(directory)
        if not (bridge / BRIDGE_MARKER).exists():
            changes.write(bridge / BRIDGE_MARKER, "")
        packages = [bridge / "contract", bridge / "noop"]
        if target.dtos:
            packages.append(bridge / "dto")
        for package in packages:
            changes.ensure_package(package)
        for directory in new_adapter_dirs:
            directory.mkdir(parents=True, exist_ok=True)
            changes.ensure_package(directory)

        for path, content in generated.items():
            if not path.exists():
                changes.write(path, content)
        if consumer_changed:
            changes.write(target.consumer, consumer_source)
        if provides is not None:
            changes.write(target.provider_app.manifest_path, provides)
        if consumes is not None:
            changes.write(target.consumer_app.manifest_path, consumes)

    # ── Entity interface ───────────────────────────────────────────

    def _apply_entity(self, target: EntityTarget, changes: _Changes) -> None:
        rewrite = ConsumerRewrite(
            self.project,
            target.consumer,
            target.entity_fqn,
            target.interface_fqn,
            target.interface_name,
            self.prune_unresolvable,
        )
        consumer_source = rewrite.run(docstrings=True)
        if consumer_source == file_ops.read_text(target.consumer):
            return

        interface_path = self.project.file_for_module(target.interface_module)
        if not interface_path.exists():
            for directory in _missing_dirs(interface_path.parent):
                directory.mkdir(parents=True, exist_ok=True)
                changes.ensure_package(directory)
            changes.write(interface_path, render_entity_interface(target))
            changes.created_interfaces.append(
                {
                    "path": self.project.relative(interface_path),
                    "fqn": target.interface_fqn,
                    "ruleKey": ENTITY_RULE,
                }
            )
        changes.write(target.consumer, consumer_source)
