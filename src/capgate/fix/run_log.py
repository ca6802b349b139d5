"""
Fix run directories under ``state/fix/``.

A run id is derived only from what the run is about to do (fixer, mode,
selection and the rendered plan), so repeating a dry-run lands in the same
directory. A stored plan that no longer matches the freshly rendered one
means the project changed under the same id and the run is refused.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..exceptions import ProjectStateError
from ..file_ops import read_text, write_json, write_text
from ..logging_config import get_logger
from ..project import Project
from .selection import FixSelection

logger = get_logger(__name__)

FIX_DIR = "fix"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def generate_run_id(fixer: str, mode: str, plan: str, selection: Optional[FixSelection] = None) -> str:
    payload = {
        "fixer": fixer,
        "mode": mode,
        "selection": selection.to_dict() if selection is not None else None,
        "plan": plan,
    }
    encoded = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha1(encoded.encode("utf-8")).hexdigest()[:12]


@dataclass(frozen=True)
class FixRunContext:
    run_id: str
    run_dir: Path
    started_at: str


class FixRunLogger:
    def __init__(self, project: Project):
        self.project = project
        self.fix_dir = project.state_dir / FIX_DIR

    def start(self, fixer: str, mode: str, plan: str, selection: Optional[FixSelection] = None) -> FixRunContext:
        run_id = generate_run_id(fixer, mode, plan, selection)
        run_dir = self.fix_dir / run_id
        plan_path = run_dir / "plan.md"

        if plan_path.is_file():
            if read_text(plan_path) != plan:
                raise ProjectStateError("Existing plan differs from current plan.", details={"runId": run_id})
            logger.debug(f"Reusing fix run {run_id}")
        else:
            write_text(plan_path, plan)
            logger.debug(f"Started fix run {run_id}")

        return FixRunContext(run_id=run_id, run_dir=run_dir, started_at=_now())

    def finish(
        self,
        context: FixRunContext,
        fixer: str,
        mode: str,
        result: str,
        changed_files: list[str],
        blockers: int,
        warnings: int,
        created_interfaces: Optional[list[dict]] = None,
        blocked: Optional[list[dict]] = None,
    ) -> dict:
        """Write ``changes.json`` and the ``latest`` pointer; return the latter."""
        unique_files = list(dict.fromkeys(changed_files))
        write_json(
            context.run_dir / "changes.json",
            {
                "changedFiles": unique_files,
                "createdInterfaces": created_interfaces or [],
                "blocked": blocked or [],
            },
        )

        latest = {
            "runId": context.run_id,
            "startedAt": context.started_at,
            "finishedAt": _now(),
            "mode": mode,
            "fixer": fixer,
            "result": result,
            "counts": {
                "changedFiles": len(unique_files),
                "blockers": blockers,
                "warnings": warnings,
            },
            "path": self.project.relative(context.run_dir),
        }
        write_json(self.fix_dir / "latest.json", latest)
        write_text(self.fix_dir / "latest.md", render_latest(latest))
        logger.info(f"Fix run {context.run_id} finished: {result}")
        return latest


def render_latest(latest: dict) -> str:
    counts = latest["counts"]
    lines = [
        "# capgate Fix Run",
        "",
        f"RunId: {latest['runId']}",
        f"Fixer: {latest['fixer']}",
        f"Mode: {latest['mode']}",
        f"Result: {latest['result']}",
        f"Path: {latest['path']}",
        "",
        f"Changed Files: {counts['changedFiles']}",
        f"Blockers: {counts['blockers']}",
        f"Warnings: {counts['warnings']}",
        "",
    ]
    return "\n".join(lines)
