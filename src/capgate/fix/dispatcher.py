"""Route autofixable findings to the fixer that owns them."""

from __future__ import annotations

from ..exceptions import ExitCode, InternalError, UserError
from ..logging_config import get_logger
from ..project import Project
from ..verifier import Verifier
from .crossing import CrossingFixer, FixOutcome
from .selection import FixSelection

logger = get_logger(__name__)

FIXERS = {
    CrossingFixer.name: CrossingFixer,
}


def run_fix(
    project: Project,
    mode: str,
    selection: FixSelection,
    prune_unresolvable: bool = False,
) -> list[FixOutcome]:
    """Run every fixer that has at least one selected autofixable finding."""
    verifier = Verifier(project)
    findings = [
        f for f in verifier.verify() if f.autofix_available and f.autofix_fixer and selection.matches(f, verifier.ids)
    ]
    if selection.finding is not None and len(findings) != 1:
        raise UserError("Finding selection did not resolve to exactly one autofixable finding.")

    fixers = list(dict.fromkeys(f.autofix_fixer for f in findings))
    if not fixers:
        logger.info("No autofixable findings matched.")
        return []

    outcomes = []
    for key in fixers:
        fixer_class = FIXERS.get(key)
        if fixer_class is None:
            raise InternalError(f'Finding refers to unknown fixer "{key}".')
        outcomes.append(fixer_class(project, prune_unresolvable, verifier=verifier).run(mode, selection))
    return outcomes


def exit_code(outcomes: list[FixOutcome]) -> int:
    return max((int(o.exit_code) for o in outcomes), default=int(ExitCode.SUCCESS))
