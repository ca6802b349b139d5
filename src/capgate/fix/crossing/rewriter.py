"""
Rewriting of one consumer module so it stops naming a provider symbol.

Every reference to the provider is switched to its replacement: type hints
are renamed, the import is swapped, and instantiations become an attribute
injected through the constructor of the enclosing class. The rewrite is a
no-op on a module that no longer references the provider, which is what
makes repeated applies idempotent.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import Optional

from ... import file_ops
from ...editing import SourceEditor
from ...exceptions import FixBlocked
from ...logging_config import get_logger
from ...project import Project
from ...scanning.names import ImportBinding, ImportTable
from ...scanning.references import INSTANTIATION, TYPE_HINT, USE_IMPORT, Reference, ReferenceCollector
from ..imports import ImportPruner, render_import, used_names

logger = get_logger(__name__)

_DOC_FIELD = re.compile(r"(:(?:type|vartype)\s+\w+:|:rtype:)([^\n]*)")


def _docstring(node: ast.AST) -> Optional[ast.Constant]:
    body = getattr(node, "body", None)
    if not body or not isinstance(body[0], ast.Expr):
        return None
    value = body[0].value
    if isinstance(value, ast.Constant) and isinstance(value.value, str):
        return value
    return None


def _decorator_names(node: ast.AST) -> set[str]:
    names = set()
    for decorator in getattr(node, "decorator_list", []):
        target = decorator.func if isinstance(decorator, ast.Call) else decorator
        if isinstance(target, ast.Name):
            names.add(target.id)
        elif isinstance(target, ast.Attribute):
            names.add(target.attr)
    return names


def _name_pattern(names: list[str]) -> Optional[re.Pattern]:
    if not names:
        return None
    alternatives = "|".join(re.escape(n) for n in sorted(set(names), key=len, reverse=True))
    return re.compile(rf"(?<![\w.])(?:{alternatives})(?![\w])")


def _first_line(node: ast.stmt) -> int:
    """Line a statement starts on, counting its decorators."""
    return min([node.lineno, *(d.lineno for d in getattr(node, "decorator_list", []))])


def _top_level_names(tree: ast.Module) -> set[str]:
    names = set()
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, ast.Assign):
            names.update(t.id for t in node.targets if isinstance(t, ast.Name))
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            names.add(node.target.id)
    return names


class ConsumerRewrite:
    """Switch every reference to *old_fqn* in *path* over to *new_fqn*."""

    def __init__(
        self,
        project: Project,
        path: Path,
        old_fqn: str,
        new_fqn: str,
        new_name: str,
        prune_unresolvable: bool = False,
    ):
        self.project = project
        self.path = path
        self.old_fqn = old_fqn
        self.new_fqn = new_fqn
        self.new_name = new_name
        self.new_module = new_fqn.rpartition(".")[0]
        self.prune_unresolvable = prune_unresolvable

    def run(self, inject_as: Optional[str] = None, docstrings: bool = False) -> str:
        """New source text of the consumer (unchanged when nothing refers to the provider).

        Args:
            inject_as: Attribute name instantiations are replaced with. Without
                it, instantiations block the rewrite.
            docstrings: Also rewrite Sphinx ``:type:``/``:rtype:`` fields

        Raises:
            FixBlocked: A reference cannot be rewritten safely
        """
        source = file_ops.read_text(self.path)
        try:
            tree = ast.parse(source, filename=str(self.path))
        except SyntaxError:
            raise FixBlocked("Consumer file could not be parsed.")

        module = self.project.module_name(self.path)
        imports = ImportTable.from_tree(tree, module, self.path.name == "__init__.py")
        refs = [
            ref
            for ref in ReferenceCollector.collect(tree, imports)
            if ref.fqn == self.old_fqn or ref.fqn.startswith(self.old_fqn + ".")
        ]
        if not refs:
            return source

        self.editor = SourceEditor(source)
        self.tree = tree
        self.imports = imports
        self.parents = {child: parent for parent in ast.walk(tree) for child in ast.iter_child_nodes(parent)}

        local = self._local_name()
        old_names = _name_pattern(imports.local_names_for(self.old_fqn))
        injected: dict[ast.ClassDef, tuple[ast.AST, bool]] = {}
        strings_done: set[int] = set()

        for ref in refs:
            if ref.kind == USE_IMPORT and ref.fqn == self.old_fqn:
                continue
            if ref.fqn != self.old_fqn:
                raise FixBlocked(f"Reference to {ref.fqn} on line {ref.line} is not autofixable.")
            if ref.kind == TYPE_HINT:
                self._rename_hint(ref, local, old_names, strings_done)
            elif ref.kind == INSTANTIATION:
                if inject_as is None:
                    raise FixBlocked(f"Instantiation on line {ref.line} cannot be rewritten.")
                cls, method, assigned = self._replace_instantiation(ref, inject_as)
                previous = injected.get(cls)
                injected[cls] = (method, assigned or (previous is not None and previous[1]))
            else:
                raise FixBlocked(f'Reference kind "{ref.kind}" is not autofixable.')

        self._swap_imports(local)

        for cls, (_, assigned) in injected.items():
            self._inject(cls, inject_as, local, assigned)

        if docstrings:
            self._rewrite_docstrings(local, old_names)

        if not self.editor.has_edits:
            return source
        rewritten = self.editor.apply()
        logger.debug(f"Rewrote {len(refs)} reference(s) to {self.old_fqn} in {self.project.relative(self.path)}")
        pruner = ImportPruner(self.project, self.prune_unresolvable)
        return pruner.prune(rewritten, self.path, previously_used=used_names(tree))

    # ── Names ──────────────────────────────────────────────────────

    def _old_bindings(self) -> list[ImportBinding]:
        return [b for b in self.imports if b.fqn == self.old_fqn and isinstance(b.statement, ast.ImportFrom)]

    def _local_name(self) -> str:
        existing = next((b for b in self.imports if b.fqn == self.new_fqn), None)
        if existing is not None:
            return existing.local

        local = self.new_name
        for binding in self._old_bindings():
            if binding.alias.asname:
                local = binding.alias.asname
                break

        conflicting = any(b.local == local and b.fqn not in (self.old_fqn, self.new_fqn) for b in self.imports)
        if conflicting or local in _top_level_names(self.tree):
            raise FixBlocked(f'Name "{local}" is already bound in the consumer.')
        return local

    # ── References ─────────────────────────────────────────────────

    def _rename_hint(self, ref: Reference, local: str, old_names: Optional[re.Pattern], done: set[int]) -> None:
        if not ref.in_string:
            self.editor.replace(ref.node, local)
            return
        if id(ref.node) in done or old_names is None:
            return
        done.add(id(ref.node))
        raw = self.editor.text(ref.node)
        rewritten = old_names.sub(local, raw)
        if rewritten != raw:
            self.editor.replace(ref.node, rewritten)

    def _enclosing_method(self, node: ast.AST) -> tuple[ast.ClassDef, ast.AST]:
        current = self.parents.get(node)
        while current is not None and not isinstance(
            current, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef, ast.Module)
        ):
            current = self.parents.get(current)

        if isinstance(current, (ast.FunctionDef, ast.AsyncFunctionDef)):
            cls = self.parents.get(current)
            has_self = current.args.posonlyargs or current.args.args
            if (
                isinstance(cls, ast.ClassDef)
                and has_self
                and not _decorator_names(current) & {"staticmethod", "classmethod"}
            ):
                return cls, current
        raise FixBlocked("Instantiation outside an instance method cannot be injected.")

    def _replace_instantiation(self, ref: Reference, prop: str) -> tuple[ast.ClassDef, ast.AST, bool]:
        cls, method = self._enclosing_method(ref.node)
        self_name = [*method.args.posonlyargs, *method.args.args][0].arg

        # self.prop = Provider() inside __init__ becomes the injected parameter itself
        parent = self.parents.get(ref.node)
        if method.name == "__init__" and isinstance(parent, (ast.Assign, ast.AnnAssign)) and parent.value is ref.node:
            targets = parent.targets if isinstance(parent, ast.Assign) else [parent.target]
            if len(targets) == 1 and self._is_self_attribute(targets[0], self_name, prop):
                self.editor.replace(ref.node, prop)
                return cls, method, True

        self.editor.replace(ref.node, f"{self_name}.{prop}")
        return cls, method, False

    @staticmethod
    def _is_self_attribute(node: ast.AST, self_name: str, attr: str) -> bool:
        return (
            isinstance(node, ast.Attribute)
            and node.attr == attr
            and isinstance(node.value, ast.Name)
            and node.value.id == self_name
        )

    # ── Imports ────────────────────────────────────────────────────

    def _swap_imports(self, local: str) -> None:
        bindings = self._old_bindings()
        has_new = any(b.fqn == self.new_fqn for b in self.imports)
        new_line = f"from {self.new_module} import {self.new_name}"
        if local != self.new_name:
            new_line += f" as {local}"

        old_aliases = {id(b.alias) for b in bindings}
        statements: list[ast.ImportFrom] = []
        for binding in bindings:
            if binding.statement not in statements:
                statements.append(binding.statement)

        placed = has_new
        for statement in statements:
            remaining = [a for a in statement.names if id(a) not in old_aliases]
            if remaining:
                self.editor.replace(statement, render_import(statement, remaining))
            elif not placed and statement in self.tree.body:
                self.editor.replace(statement, new_line)
                placed = True
            elif self.editor.owns_lines(statement):
                self.editor.delete_lines(statement)
            else:
                self.editor.replace(statement, "pass")

        if not placed:
            self._insert_import(new_line)

    def _insert_import(self, line: str) -> None:
        newline = self.editor.newline()
        top_imports = [n for n in self.tree.body if isinstance(n, (ast.Import, ast.ImportFrom))]
        if top_imports:
            offset = self.editor.line_end(top_imports[-1].end_lineno)
        elif _docstring(self.tree) is not None:
            offset = self.editor.line_end(self.tree.body[0].end_lineno)
        else:
            offset = 0
        if offset == len(self.editor.source) and not self.editor.source.endswith(("\n", "\r")):
            self.editor.insert(offset, newline + line + newline)
        else:
            self.editor.insert(offset, line + newline)

    # ── Constructor injection ──────────────────────────────────────

    def _inject(self, cls: ast.ClassDef, prop: str, type_name: str, assigned: bool) -> None:
        if "dataclass" in _decorator_names(cls):
            raise FixBlocked("Dataclass consumers cannot receive constructor injection.")

        init = next(
            (n for n in cls.body if isinstance(n, ast.FunctionDef) and n.name == "__init__"),
            None,
        )
        if init is None:
            self._create_init(cls, prop, type_name)
            return

        self._add_parameter(init, prop, type_name)
        if not assigned:
            self._add_assignment(init, prop)

    def _starts_line(self, node: ast.stmt, start: int) -> bool:
        """True when *node* owns its lines and nothing precedes it on line *start*."""
        if not self.editor.owns_lines(node):
            return False
        if start == node.lineno:
            return True
        prefix = self.editor.source[self.editor.line_start(start) : self.editor.line_end(start)]
        return prefix.lstrip().startswith("@")

    def _create_init(self, cls: ast.ClassDef, prop: str, type_name: str) -> None:
        if cls.bases or cls.keywords:
            raise FixBlocked(f'Consumer class "{cls.name}" has base classes and no constructor.')
        first = cls.body[0]
        start = _first_line(first)
        if start == cls.lineno or not self._starts_line(first, start):
            raise FixBlocked(f'Consumer class "{cls.name}" must have its body on separate lines.')

        newline = self.editor.newline()
        body_indent = self.editor.indent_of(first)
        unit = body_indent[len(self.editor.indent_of(cls)) :] or "    "
        text = (
            f"{body_indent}def __init__(self, {prop}: {type_name}):{newline}"
            f"{body_indent}{unit}self.{prop} = {prop}{newline}"
        )

        if _docstring(cls) is not None:
            self.editor.insert(self.editor.line_end(first.end_lineno), newline + text)
        else:
            self.editor.insert(self.editor.line_start(start), text + newline)

    def _add_parameter(self, init: ast.FunctionDef, prop: str, type_name: str) -> None:
        args = init.args
        every = [*args.posonlyargs, *args.args, *args.kwonlyargs, args.vararg, args.kwarg]
        if any(a is not None and a.arg == prop for a in every):
            return

        param = f"{prop}: {type_name}"
        positional = [*args.posonlyargs, *args.args]
        if not positional:
            raise FixBlocked("Consumer constructor has no self parameter.")

        if args.kwarg is not None:
            kwarg_start = self.editor.offset(args.kwarg.lineno, args.kwarg.col_offset)
            star = self.editor.source.rfind("**", 0, kwarg_start)
            prefix = "" if args.vararg is not None or args.kwonlyargs else "*, "
            self.editor.insert(star, f"{prefix}{param}, ")
            return

        if args.vararg is not None or args.kwonlyargs:
            last: ast.AST = args.vararg
            if args.kwonlyargs:
                last = args.kw_defaults[-1] or args.kwonlyargs[-1]
            _, end = self.editor.span(last)
            self.editor.insert(end, f", {param}")
            return

        if args.defaults:
            _, end = self.editor.span(args.defaults[-1])
            self.editor.insert(end, f", *, {param}")
            return

        _, end = self.editor.span(positional[-1])
        self.editor.insert(end, f", {param}")

    def _add_assignment(self, init: ast.FunctionDef, prop: str) -> None:
        self_name = [*init.args.posonlyargs, *init.args.args][0].arg
        for node in ast.walk(init):
            if (
                isinstance(node, ast.Assign)
                and len(node.targets) == 1
                and self._is_self_attribute(node.targets[0], self_name, prop)
                and isinstance(node.value, ast.Name)
                and node.value.id == prop
            ):
                return

        first = init.body[0]
        start = _first_line(first)
        if start == init.lineno or not self._starts_line(first, start):
            raise FixBlocked("Consumer constructor body must start on its own line.")

        newline = self.editor.newline()
        line = f"{self.editor.indent_of(first)}{self_name}.{prop} = {prop}{newline}"
        if _docstring(init) is not None:
            self.editor.insert(self.editor.line_end(first.end_lineno), line)
        else:
            self.editor.insert(self.editor.line_start(start), line)

    # ── Docstrings ─────────────────────────────────────────────────

    def _rewrite_docstrings(self, local: str, old_names: Optional[re.Pattern]) -> None:
        def field(match: re.Match) -> str:
            value = match.group(2).replace(self.old_fqn, self.new_fqn)
            if old_names is not None:
                value = old_names.sub(local, value)
            return match.group(1) + value

        for node in ast.walk(self.tree):
            if not isinstance(node, (ast.Module, ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            docstring = _docstring(node)
            if docstring is None:
                continue
            raw = self.editor.text(docstring)
            rewritten = _DOC_FIELD.sub(field, raw)
            if rewritten != raw:
                self.editor.replace(docstring, rewritten)
