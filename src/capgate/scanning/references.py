"""Symbol references of a module, classified by how they are used."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Optional

from .names import ImportNode, ImportTable

USE_IMPORT = "use-import"
TYPE_HINT = "type-hint"
INSTANTIATION = "instantiation"
EXTENDS = "extends"
INSTANCEOF = "instanceof"
CATCH = "catch"
DECORATOR = "decorator"
REFERENCE = "reference"

FIXABLE_KINDS = (USE_IMPORT, TYPE_HINT, INSTANTIATION)


@dataclass(frozen=True)
class Reference:
    fqn: str
    kind: str
    node: ast.AST
    line: int
    statement: Optional[ImportNode] = None  # use-import only
    in_string: bool = False  # type hint written as a string annotation


def _is_class_name(fqn: str) -> bool:
    return fqn.rsplit(".", 1)[-1][:1].isupper()


class ReferenceCollector(ast.NodeVisitor):
    """Collect every import-resolvable reference in a module.

    A name that does not resolve through the module's imports (locals,
    builtins, ``self``) is not a reference and is skipped.
    """

    def __init__(self, imports: ImportTable):
        self.imports = imports
        self.references: list[Reference] = []

    @classmethod
    def collect(cls, tree: ast.Module, imports: ImportTable) -> list[Reference]:
        collector = cls(imports)
        collector.visit(tree)
        return collector.references

    def _emit(self, node: ast.AST, kind: str, line: Optional[int] = None, in_string: bool = False) -> bool:
        fqn = self.imports.resolve(node)
        if fqn is None:
            return False
        self.references.append(
            Reference(fqn, kind, node, line or getattr(node, "lineno", 0), in_string=in_string)
        )
        return True

    def _typed(self, node: Optional[ast.AST], kind: str) -> None:
        """Visit a position where bare names are used as *kind*."""
        if node is None:
            return
        if isinstance(node, (ast.Name, ast.Attribute)):
            if not self._emit(node, kind):
                self.visit(node)
        elif isinstance(node, ast.Tuple):
            for element in node.elts:
                self._typed(element, kind)
        else:
            self.visit(node)

    # -- imports -------------------------------------------------------------

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.references.append(Reference(alias.name, USE_IMPORT, alias, node.lineno, statement=node))

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        for alias in node.names:
            binding = next((b for b in self.imports if b.alias is alias), None)
            if binding is not None:
                self.references.append(Reference(binding.fqn, USE_IMPORT, alias, node.lineno, statement=node))

    # -- annotations ---------------------------------------------------------

    def annotation(self, node: Optional[ast.AST], string_line: Optional[int] = None) -> None:
        if node is None:
            return
        if isinstance(node, (ast.Name, ast.Attribute)):
            if string_line is not None:
                fqn = self.imports.resolve(node)
                if fqn is not None:
                    self.references.append(Reference(fqn, TYPE_HINT, node, string_line, in_string=True))
            elif not self._emit(node, TYPE_HINT):
                self.visit(node)
        elif isinstance(node, ast.Subscript):
            self.annotation(node.value, string_line)
            self.annotation(node.slice, string_line)
        elif isinstance(node, (ast.Tuple, ast.List)):
            for element in node.elts:
                self.annotation(element, string_line)
        elif isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            self.annotation(node.left, string_line)
            self.annotation(node.right, string_line)
        elif isinstance(node, ast.Constant) and isinstance(node.value, str):
            self._string_annotation(node)
        elif string_line is None:
            self.visit(node)

    def _string_annotation(self, node: ast.Constant) -> None:
        try:
            parsed = ast.parse(node.value.strip(), mode="eval")
        except SyntaxError:
            return
        before = len(self.references)
        self.annotation(parsed.body, string_line=node.lineno)
        # Positions inside the string are relative to the string; point at the literal
        self.references[before:] = [
            Reference(ref.fqn, ref.kind, node, ref.line, in_string=True) for ref in self.references[before:]
        ]

    def _arguments(self, args: ast.arguments) -> None:
        for arg in (*args.posonlyargs, *args.args, *args.kwonlyargs):
            self.annotation(arg.annotation)
        for arg in (args.vararg, args.kwarg):
            if arg is not None:
                self.annotation(arg.annotation)
        for default in (*args.defaults, *args.kw_defaults):
            if default is not None:
                self.visit(default)

    # -- definitions ---------------------------------------------------------

    def _decorators(self, decorators: list[ast.expr]) -> None:
        for decorator in decorators:
            if isinstance(decorator, ast.Call):
                self._typed(decorator.func, DECORATOR)
                for arg in decorator.args:
                    self.visit(arg)
                for keyword in decorator.keywords:
                    self.visit(keyword.value)
            else:
                self._typed(decorator, DECORATOR)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self._decorators(node.decorator_list)
        self._arguments(node.args)
        self.annotation(node.returns)
        for statement in node.body:
            self.visit(statement)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda) -> None:
        self._arguments(node.args)
        self.visit(node.body)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._decorators(node.decorator_list)
        for base in node.bases:
            self._typed(base, EXTENDS)
        for keyword in node.keywords:
            self.visit(keyword.value)
        for statement in node.body:
            self.visit(statement)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        self.visit(node.target)
        self.annotation(node.annotation)
        if node.value is not None:
            self.visit(node.value)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        self._typed(node.type, CATCH)
        for statement in node.body:
            self.visit(statement)

    # -- expressions ---------------------------------------------------------

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        if isinstance(func, ast.Name) and func.id in ("isinstance", "issubclass") and len(node.args) >= 2:
            self.visit(node.args[0])
            self._typed(node.args[1], INSTANCEOF)
            for arg in node.args[2:]:
                self.visit(arg)
        else:
            fqn = self.imports.resolve(func)
            if fqn is not None:
                kind = INSTANTIATION if _is_class_name(fqn) else REFERENCE
                self.references.append(Reference(fqn, kind, node if kind == INSTANTIATION else func, node.lineno))
            else:
                self.visit(func)
            for arg in node.args:
                self.visit(arg)
        for keyword in node.keywords:
            self.visit(keyword.value)

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, ast.Load):
            self._emit(node, REFERENCE)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if isinstance(node.ctx, ast.Load) and self._emit(node, REFERENCE):
            return
        self.visit(node.value)
