"""Recognition of persistence entities."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Iterator, Optional

from .names import ImportTable

RUNTIME = "capgate.runtime"
BASE_ENTITY = f"{RUNTIME}.BaseEntity"
ENTITY_INTERFACE = f"{RUNTIME}.EntityInterface"
ENTITY_MIXIN = f"{RUNTIME}.EntityMixin"
ENTITY_DECORATOR = f"{RUNTIME}.entity"

TABLENAME = "__tablename__"


@dataclass(frozen=True)
class EntityClass:
    node: ast.ClassDef
    table_name: Optional[str]  # None when __tablename__ is absent or not a literal
    declares_table: bool
    bases: tuple[str, ...]  # resolved base names


def _class_assignments(node: ast.ClassDef) -> Iterator[tuple[str, ast.AST]]:
    for statement in node.body:
        if isinstance(statement, ast.Assign):
            for target in statement.targets:
                if isinstance(target, ast.Name):
                    yield target.id, statement.value
        elif isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
            if statement.value is not None:
                yield statement.target.id, statement.value


def _resolved_bases(node: ast.ClassDef, imports: ImportTable) -> tuple[str, ...]:
    names = []
    for base in node.bases:
        resolved = imports.resolve(base)
        if resolved is not None:
            names.append(resolved)
    return tuple(names)


def is_abstract(node: ast.ClassDef) -> bool:
    for name, value in _class_assignments(node):
        if name == "__abstract__" and isinstance(value, ast.Constant) and value.value is True:
            return True
    return False


def entity_class(node: ast.ClassDef, imports: ImportTable) -> Optional[EntityClass]:
    """EntityClass for *node*, or None when it is not a concrete entity."""
    if is_abstract(node):
        return None

    table_value: Optional[ast.AST] = None
    declares_table = False
    for name, value in _class_assignments(node):
        if name == TABLENAME:
            declares_table = True
            table_value = value

    bases = _resolved_bases(node, imports)
    decorated = any(imports.resolve(d) == ENTITY_DECORATOR for d in node.decorator_list)

    if not (declares_table or decorated or BASE_ENTITY in bases):
        return None

    table_name = None
    if isinstance(table_value, ast.Constant) and isinstance(table_value.value, str):
        table_name = table_value.value

    return EntityClass(node=node, table_name=table_name, declares_table=declares_table, bases=bases)


def entity_classes(tree: ast.Module, imports: ImportTable) -> list[EntityClass]:
    found = []
    for node in ast.walk(tree):
        if isinstance(node, ast.ClassDef):
            entity = entity_class(node, imports)
            if entity is not None:
                found.append(entity)
    return found


def join_tables(tree: ast.Module, imports: ImportTable) -> list[tuple[ast.Call, Optional[str]]]:
    """``Table("name", ...)`` calls with their literal name (None if not literal)."""
    tables = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        resolved = imports.resolve(node.func) or ""
        local = node.func.id if isinstance(node.func, ast.Name) else None
        if not (resolved.endswith(".Table") or resolved == "Table" or local == "Table"):
            continue
        name = None
        if node.args and isinstance(node.args[0], ast.Constant) and isinstance(node.args[0].value, str):
            name = node.args[0].value
        tables.append((node, name))
    return tables
