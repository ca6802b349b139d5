"""Resolution of local names to fully-qualified dotted names."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Iterator, Optional, Union

ImportNode = Union[ast.Import, ast.ImportFrom]


def dotted_name(node: ast.AST) -> Optional[str]:
    """``a.b.c`` for a Name/Attribute chain, None for anything else."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = dotted_name(node.value)
        return f"{base}.{node.attr}" if base else None
    return None


def resolve_relative(module: Optional[str], level: int, target: Optional[str], is_package: bool) -> Optional[str]:
    """Absolute module named by a ``from .target import ...`` statement."""
    if level == 0:
        return target
    if module is None:
        return None
    parts = module.split(".")
    if not is_package:
        parts = parts[:-1]
    drop = level - 1
    if drop > len(parts):
        return None
    base = parts[: len(parts) - drop]
    if target:
        base = base + target.split(".")
    return ".".join(base) or None


@dataclass(frozen=True)
class ImportBinding:
    local: str  # name bound in the module namespace
    fqn: str  # what it refers to
    statement: ImportNode
    alias: ast.alias


class ImportTable:
    """Every import statement of a module, in source order."""

    def __init__(self, bindings: list[ImportBinding]):
        self.bindings = bindings
        self._by_local: dict[str, str] = {}
        for binding in bindings:
            self._by_local[binding.local] = binding.fqn

    @classmethod
    def from_tree(cls, tree: ast.Module, module: Optional[str], is_package: bool = False) -> "ImportTable":
        bindings = []
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.asname:
                        bindings.append(ImportBinding(alias.asname, alias.name, node, alias))
                    else:
                        # "import a.b" binds "a"
                        head = alias.name.split(".", 1)[0]
                        bindings.append(ImportBinding(head, head, node, alias))
            elif isinstance(node, ast.ImportFrom):
                base = resolve_relative(module, node.level, node.module, is_package)
                if base is None:
                    continue
                for alias in node.names:
                    if alias.name == "*":
                        continue
                    bindings.append(
                        ImportBinding(alias.asname or alias.name, f"{base}.{alias.name}", node, alias)
                    )
        bindings.sort(key=lambda b: (b.statement.lineno, b.statement.col_offset))
        return cls(bindings)

    def get(self, local: str) -> Optional[str]:
        return self._by_local.get(local)

    def resolve(self, node: ast.AST) -> Optional[str]:
        """Fully-qualified name of a Name/Attribute chain, when imported."""
        name = dotted_name(node)
        if name is None:
            return None
        return self.resolve_dotted(name)

    def resolve_dotted(self, name: str) -> Optional[str]:
        head, _, rest = name.partition(".")
        target = self._by_local.get(head)
        if target is None:
            return None
        return f"{target}.{rest}" if rest else target

    def local_names_for(self, fqn: str) -> list[str]:
        """Local names (or dotted prefixes) that resolve to *fqn*."""
        names = []
        for binding in self.bindings:
            if binding.fqn == fqn:
                names.append(binding.local)
            elif fqn.startswith(binding.fqn + "."):
                names.append(binding.local + fqn[len(binding.fqn) :])
        return names

    def __iter__(self) -> Iterator[ImportBinding]:
        return iter(self.bindings)
