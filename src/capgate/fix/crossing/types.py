"""Annotations of provider methods, reduced to what a bridge can carry.

A bridge contract may only mention builtins, ``datetime``/``date`` and
generated DTOs. Everything else is reported as unsupported by returning
None from :func:`parse_type`.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, replace
from typing import Optional

from ...scanning.names import ImportTable

BUILTIN = "builtin"
DATETIME = "datetime"
CLASS = "class"
NONE = "none"

BUILTIN_NAMES = frozenset(
    {"str", "int", "float", "bool", "bytes", "list", "dict", "tuple", "set", "frozenset", "object"}
)
CONTAINER_NAMES = frozenset({"list", "dict", "tuple", "set", "frozenset"})
TYPING_ALIASES = {
    "List": "list",
    "Dict": "dict",
    "Tuple": "tuple",
    "Set": "set",
    "FrozenSet": "frozenset",
}
DATETIME_TYPES = {"datetime.datetime": "datetime", "datetime.date": "date"}

Import = tuple[str, str]  # (module, name)


@dataclass(frozen=True)
class TypeRef:
    kind: str  # BUILTIN | DATETIME | CLASS | NONE
    name: str  # "str", "list", "datetime", class short name
    text: str  # rendered annotation without the None member
    nullable: bool = False
    fqn: Optional[str] = None
    imports: tuple[Import, ...] = ()

    def render(self) -> str:
        if self.kind == NONE:
            return "None"
        return f"{self.text} | None" if self.nullable else self.text

    @property
    def is_plain(self) -> bool:
        """True for types a bridge passes through unchanged."""
        return self.kind in (BUILTIN, DATETIME, NONE)


NONE_TYPE = TypeRef(NONE, "None", "None")


class TypeResolver:
    """Resolve annotation names through a module's imports and classes."""

    def __init__(self, imports: ImportTable, module: Optional[str], tree: Optional[ast.Module] = None):
        self.imports = imports
        self.local_classes: dict[str, str] = {}
        if tree is not None and module is not None:
            for node in tree.body:
                if isinstance(node, ast.ClassDef):
                    self.local_classes[node.name] = f"{module}.{node.name}"

    def resolve(self, node: ast.AST) -> Optional[str]:
        resolved = self.imports.resolve(node)
        if resolved is not None:
            return resolved
        if isinstance(node, ast.Name):
            return self.local_classes.get(node.id)
        return None

    def parse(self, node: Optional[ast.AST]) -> Optional[TypeRef]:
        return parse_type(node, self)


def _is_none(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _union_members(node: ast.AST, resolver: TypeResolver) -> Optional[list[ast.AST]]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            node = ast.parse(node.value.strip(), mode="eval").body
        except SyntaxError:
            return None
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        left = _union_members(node.left, resolver)
        right = _union_members(node.right, resolver)
        if left is None or right is None:
            return None
        return left + right
    if isinstance(node, ast.Subscript):
        origin = resolver.resolve(node.value)
        if origin == "typing.Optional":
            return [node.slice, ast.Constant(value=None)]
        if origin == "typing.Union":
            elements = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
            members: list[ast.AST] = []
            for element in elements:
                nested = _union_members(element, resolver)
                if nested is None:
                    return None
                members.extend(nested)
            return members
    return [node]


def parse_type(node: Optional[ast.AST], resolver: TypeResolver) -> Optional[TypeRef]:
    """TypeRef for an annotation, or None when it cannot cross a bridge.

    ``Optional[X]``, ``Union[X, None]`` and ``X | None`` all normalize to a
    nullable ``X``. Unions of two real types are unsupported.
    """
    if node is None:
        return None
    members = _union_members(node, resolver)
    if members is None:
        return None

    nullable = any(_is_none(m) for m in members)
    rest = [m for m in members if not _is_none(m)]
    if not rest:
        return NONE_TYPE
    if len(rest) > 1:
        return None

    ref = _single(rest[0], resolver)
    if ref is None:
        return None
    return replace(ref, nullable=True) if nullable else ref


def _single(node: ast.AST, resolver: TypeResolver) -> Optional[TypeRef]:
    if isinstance(node, (ast.Name, ast.Attribute)):
        return _named(node, resolver)
    if isinstance(node, ast.Subscript):
        return _generic(node, resolver)
    return None


def _named(node: ast.AST, resolver: TypeResolver) -> Optional[TypeRef]:
    resolved = resolver.resolve(node)

    if resolved is None:
        if isinstance(node, ast.Name) and node.id in BUILTIN_NAMES:
            return TypeRef(BUILTIN, node.id, node.id)
        return None

    if resolved in DATETIME_TYPES:
        short = DATETIME_TYPES[resolved]
        return TypeRef(DATETIME, short, short, fqn=resolved, imports=(("datetime", short),))

    if resolved.startswith("typing."):
        short = resolved.rsplit(".", 1)[-1]
        if short in TYPING_ALIASES:
            builtin = TYPING_ALIASES[short]
            return TypeRef(BUILTIN, builtin, builtin)
        if short == "Any":
            return TypeRef(BUILTIN, "Any", "Any", imports=(("typing", "Any"),))
        return None

    short = resolved.rsplit(".", 1)[-1]
    return TypeRef(CLASS, short, short, fqn=resolved)


def _generic(node: ast.Subscript, resolver: TypeResolver) -> Optional[TypeRef]:
    base = _named(node.value, resolver) if isinstance(node.value, (ast.Name, ast.Attribute)) else None
    if base is None or base.kind != BUILTIN or base.name not in CONTAINER_NAMES:
        return None

    elements = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
    texts = []
    imports = list(base.imports)
    for element in elements:
        if isinstance(element, ast.Constant) and element.value is Ellipsis:
            texts.append("...")
            continue
        arg = parse_type(element, resolver)
        # generics over classes would need DTO collections
        if arg is None or not arg.is_plain:
            return None
        texts.append(arg.render())
        imports.extend(arg.imports)

    return TypeRef(BUILTIN, base.name, f"{base.name}[{', '.join(texts)}]", imports=tuple(dict.fromkeys(imports)))
