"""
Removal of imports a rewrite left behind.

Only module-level import statements are considered. ``__future__`` imports,
names listed in ``__all__`` and package ``__init__`` modules (which usually
re-export) are never touched.
"""

from __future__ import annotations

import ast
import importlib.util
from pathlib import Path
from typing import Optional

from ..editing import SourceEditor
from ..exceptions import FixBlocked
from ..logging_config import get_logger
from ..project import Project
from ..scanning.names import ImportNode, resolve_relative

logger = get_logger(__name__)


def render_import(statement: ImportNode, aliases: list[ast.alias]) -> str:
    names = ", ".join(f"{a.name} as {a.asname}" if a.asname else a.name for a in aliases)
    if isinstance(statement, ast.Import):
        return f"import {names}"
    return f"from {'.' * statement.level}{statement.module or ''} import {names}"


def _bound_name(alias: ast.alias) -> str:
    return alias.asname or alias.name.split(".", 1)[0]


def _string_names(value: str) -> set[str]:
    try:
        parsed = ast.parse(value.strip(), mode="eval")
    except SyntaxError:
        return set()
    return {node.id for node in ast.walk(parsed) if isinstance(node, ast.Name)}


def used_names(tree: ast.Module) -> set[str]:
    """Names loaded anywhere in *tree*, including inside string annotations."""
    used = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name) and not isinstance(node.ctx, ast.Store):
            used.add(node.id)
        elif isinstance(node, ast.Constant) and isinstance(node.value, str) and len(node.value) < 200:
            used.update(_string_names(node.value))
    return used


def exported_names(tree: ast.Module) -> set[str]:
    for node in tree.body:
        if not isinstance(node, (ast.Assign, ast.AnnAssign)):
            continue
        targets = node.targets if isinstance(node, ast.Assign) else [node.target]
        if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
            continue
        try:
            value = ast.literal_eval(node.value)
        except ValueError:
            return set()
        if isinstance(value, (list, tuple)):
            return {v for v in value if isinstance(v, str)}
    return set()


class ImportPruner:
    def __init__(self, project: Project, prune_unresolvable: bool = False):
        self.project = project
        self.prune_unresolvable = prune_unresolvable

    def prune(self, source: str, path: Path, previously_used: Optional[set[str]] = None) -> str:
        """Drop imports of *source* that nothing uses.

        With *previously_used* (names loaded before a rewrite), only imports
        whose name was in that set lose their last use here. Imports that
        were already unused stay, since they may be imported for their side
        effects.
        """
        if path.name == "__init__.py":
            return source

        try:
            tree = ast.parse(source, filename=str(path))
        except SyntaxError as e:
            raise FixBlocked(f"Rewritten file {self.project.relative(path)} is not valid Python: {e.msg}")

        module = self.project.module_name(path)
        used = used_names(tree)
        keep_always = exported_names(tree)
        editor = SourceEditor(source)

        for statement in tree.body:
            if not isinstance(statement, (ast.Import, ast.ImportFrom)):
                continue
            if isinstance(statement, ast.ImportFrom) and statement.module == "__future__":
                continue

            kept = []
            for alias in statement.names:
                if alias.name == "*":
                    kept.append(alias)
                    continue
                local = _bound_name(alias)
                if local in keep_always:
                    kept.append(alias)
                    continue
                if local not in used and previously_used is not None and local not in previously_used:
                    kept.append(alias)
                    continue
                if local not in used:
                    logger.debug(f"Pruning unused import {local} from {path.name}")
                    continue
                if self.prune_unresolvable and not self._resolvable(statement, alias, module):
                    logger.info(f"Pruning unresolvable import {alias.name} from {path.name}")
                    continue
                kept.append(alias)

            if len(kept) == len(statement.names):
                continue
            if kept:
                editor.replace(statement, render_import(statement, kept))
            elif editor.owns_lines(statement):
                editor.delete_lines(statement)
            else:
                editor.replace(statement, "pass")

        return editor.apply() if editor.has_edits else source

    # ── Resolvability ──────────────────────────────────────────────

    def _resolvable(self, statement: ImportNode, alias: ast.alias, module: Optional[str]) -> bool:
        if isinstance(statement, ast.Import):
            return self._module_resolvable(alias.name)

        is_package = False  # __init__ modules are never pruned
        base = resolve_relative(module, statement.level, statement.module, is_package)
        if base is None:
            return False
        if self._module_resolvable(f"{base}.{alias.name}"):
            return True
        return self._module_resolvable(base) and self._defines(base, alias.name)

    def _module_resolvable(self, module: str) -> bool:
        if self.project.module_exists(module):
            return True
        try:
            return importlib.util.find_spec(module) is not None
        except (ImportError, ValueError):
            return False

    def _defines(self, module: str, name: str) -> bool:
        """Whether *module* binds *name* at top level.

        Only modules of the analyzed project can be inspected; anything
        else is assumed to define it.
        """
        path = self.project.module_path(module)
        if path is None:
            return True
        try:
            tree = ast.parse(path.read_text(encoding="utf-8"))
        except (OSError, SyntaxError, ValueError):
            return True

        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)) and node.name == name:
                return True
            if isinstance(node, ast.Assign):
                if any(isinstance(t, ast.Name) and t.id == name for t in node.targets):
                    return True
            if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and node.target.id == name:
                return True
            if isinstance(node, (ast.Import, ast.ImportFrom)):
                if any(_bound_name(a) == name for a in node.names):
                    return True
            if isinstance(node, (ast.If, ast.Try)):
                # conditional definitions are not followed
                return True
        return False
