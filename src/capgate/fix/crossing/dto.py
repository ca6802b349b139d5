"""DTOs for provider classes returned across a bridge."""

from __future__ import annotations

import ast
from dataclasses import replace
from typing import Optional

from ...exceptions import FixBlocked
from ...project import Project
from ...registry.models import App
from ...registry.slug import pascal_case
from ...scanning.entities import entity_class
from ...scanning.source import SourceIndex
from .models import BridgeNames, DtoSpec, Signature
from .signatures import locate_class
from .types import CLASS, TypeRef, TypeResolver

# Names whose presence on a class or field means an ORM owns it
PERSISTENCE_MARKERS = frozenset({"Mapped", "mapped_column", "Column", "relationship", "declared_attr"})


def _is_dataclass(node: ast.ClassDef) -> bool:
    for decorator in node.decorator_list:
        target = decorator.func if isinstance(decorator, ast.Call) else decorator
        name = target.id if isinstance(target, ast.Name) else getattr(target, "attr", None)
        if name == "dataclass":
            return True
    return False


def _has_persistence_markers(node: ast.ClassDef) -> bool:
    for child in ast.walk(node):
        if isinstance(child, ast.Name) and child.id in PERSISTENCE_MARKERS:
            return True
        if isinstance(child, ast.Attribute) and child.attr in PERSISTENCE_MARKERS:
            return True
    return False


def _is_class_var(annotation: ast.AST) -> bool:
    target = annotation.value if isinstance(annotation, ast.Subscript) else annotation
    name = target.id if isinstance(target, ast.Name) else getattr(target, "attr", None)
    return name == "ClassVar"


def _constructor(node: ast.ClassDef) -> Optional[ast.FunctionDef]:
    for statement in node.body:
        if isinstance(statement, ast.FunctionDef) and statement.name == "__init__":
            return statement
    return None


def _declared_fields(node: ast.ClassDef) -> list[tuple[str, ast.AST]]:
    fields = []
    for statement in node.body:
        if isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
            if not _is_class_var(statement.annotation):
                fields.append((statement.target.id, statement.annotation))
    return fields


def _constructor_fields(init: ast.FunctionDef) -> list[tuple[str, Optional[ast.AST]]]:
    """Parameters stored unchanged on ``self`` by ``__init__``."""
    params = {a.arg: a.annotation for a in [*init.args.args, *init.args.kwonlyargs][1:]}
    fields = []
    for statement in init.body:
        if not isinstance(statement, ast.Assign) or len(statement.targets) != 1:
            continue
        target = statement.targets[0]
        if (
            isinstance(target, ast.Attribute)
            and isinstance(target.value, ast.Name)
            and target.value.id == "self"
            and isinstance(statement.value, ast.Name)
            and statement.value.id in params
        ):
            fields.append((target.attr, params[statement.value.id]))
    return fields


class DtoPlanner:
    """Plan one DTO per provider class returned by a bridged method."""

    def __init__(self, project: Project, index: SourceIndex, provider_app: App, names: BridgeNames):
        self.project = project
        self.index = index
        self.provider_app = provider_app
        self.names = names
        self.specs: list[DtoSpec] = []
        self._by_source: dict[str, DtoSpec] = {}

    def resolve(self, fqn: str) -> DtoSpec:
        if self.project.app_folder_of_symbol(fqn) != self.provider_app.folder:
            raise FixBlocked("DTOs are only generated for provider app classes.")
        if fqn in self._by_source:
            return self._by_source[fqn]

        located = locate_class(self.index, fqn)
        if located is None:
            raise FixBlocked("DTO source class not found.")
        source, node = located

        if entity_class(node, source.imports) is not None or _has_persistence_markers(node):
            raise FixBlocked("DTO source class uses persistence mapping.")

        resolver = TypeResolver(source.imports, source.module, source.tree)
        init = _constructor(node)
        raw_fields = _declared_fields(node)
        if not raw_fields and init is not None:
            raw_fields = _constructor_fields(init)

        fields: list[tuple[str, TypeRef]] = []
        for name, annotation in raw_fields:
            if name.startswith("_"):
                raise FixBlocked("DTO source properties must be public.")
            type_ref = resolver.parse(annotation)
            if type_ref is None:
                if annotation is None:
                    raise FixBlocked("DTO source property types must be declared.")
                raise FixBlocked("Nested DTOs are not supported.")
            if not type_ref.is_plain:
                raise FixBlocked("Nested DTOs are not supported.")
            fields.append((name, type_ref))

        if not _is_dataclass(node):
            if init is None:
                raise FixBlocked("DTO source class must define a constructor.")
            accepted = {a.arg for a in [*init.args.posonlyargs, *init.args.args, *init.args.kwonlyargs]}
            if any(name not in accepted for name, _ in fields):
                raise FixBlocked("DTO source constructor must accept all properties.")

        short = fqn.rsplit(".", 1)[-1]
        class_name = f"{short}Dto"
        if any(spec.class_name == class_name for spec in self.specs):
            class_name = f"{pascal_case(self.provider_app.folder)}{short}Dto"

        spec = DtoSpec(
            source_fqn=fqn,
            class_name=class_name,
            module=self.names.dto_module(class_name),
            fields=tuple(fields),
        )
        self.specs.append(spec)
        self._by_source[fqn] = spec
        return spec


def map_signatures(signatures: list[Signature], dtos: DtoPlanner) -> list[Signature]:
    """Contract-facing signatures: class returns become nullable DTOs.

    Raises:
        FixBlocked: A parameter takes an object, or a returned class cannot
            become a DTO
    """
    mapped = []
    for signature in signatures:
        for param in signature.params:
            if param.type is not None and param.type.kind == CLASS:
                raise FixBlocked("Object parameters are not autofixable.")

        returns = signature.returns
        if returns is None or returns.kind != CLASS:
            mapped.append(signature)
            continue

        spec = dtos.resolve(returns.fqn)
        dto_type = TypeRef(
            CLASS,
            spec.class_name,
            spec.class_name,
            nullable=True,
            fqn=spec.fqn,
            imports=((spec.module, spec.class_name),),
        )
        mapped.append(replace(signature, returns=dto_type, dto=spec))
    return mapped
