"""Minimal provider surface: the methods a consumer actually calls."""

from __future__ import annotations

import ast
from typing import Optional

from ...exceptions import FixBlocked
from ...scanning.names import ImportTable
from ...scanning.source import SourceFile, SourceIndex
from .models import Param, Signature
from .types import TypeResolver

UNRESOLVED = "Unable to resolve provider methods."

_NON_INSTANCE_DECORATORS = frozenset({"staticmethod", "classmethod", "property"})


def locate_class(index: SourceIndex, fqn: str, depth: int = 3) -> Optional[tuple[SourceFile, ast.ClassDef]]:
    """Module and definition of class *fqn*, following package re-exports."""
    module, _, name = fqn.rpartition(".")
    if not module:
        return None
    source = index.for_module(module)
    if source is None:
        return None

    for node in source.tree.body:
        if isinstance(node, ast.ClassDef) and node.name == name:
            return source, node

    target = source.imports.get(name)
    if depth > 0 and target is not None and target != fqn:
        return locate_class(index, target, depth - 1)
    return None


# ── Consumer side ──────────────────────────────────────────────────


def _mentions(node: Optional[ast.AST], imports: ImportTable, fqn: str) -> bool:
    """Whether an annotation names *fqn* anywhere, string annotations included."""
    if node is None:
        return False
    for child in ast.walk(node):
        if isinstance(child, (ast.Name, ast.Attribute)) and imports.resolve(child) == fqn:
            return True
        if isinstance(child, ast.Constant) and isinstance(child.value, str):
            try:
                parsed = ast.parse(child.value.strip(), mode="eval")
            except SyntaxError:
                continue
            if _mentions(parsed, imports, fqn):
                return True
    return False


def _creates(node: Optional[ast.AST], imports: ImportTable, fqn: str) -> bool:
    return isinstance(node, ast.Call) and imports.resolve(node.func) == fqn


def _self_attribute(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name) and node.value.id == "self":
        return node.attr
    return None


def extract_called_methods(source: SourceFile, provider_fqn: str) -> list[str]:
    """Names of methods the consumer invokes on the provider, in order.

    A provider instance is recognized through attributes annotated with or
    assigned an instance of the provider, through annotated parameters and
    local variables, and through calls on an inline instantiation.
    """
    imports = source.imports
    attributes: set[str] = set()
    variables: set[str] = set()

    for node in ast.walk(source.tree):
        if isinstance(node, ast.AnnAssign):
            typed = _mentions(node.annotation, imports, provider_fqn)
            created = _creates(node.value, imports, provider_fqn)
            if typed or created:
                if isinstance(node.target, ast.Name):
                    variables.add(node.target.id)
                    attributes.add(node.target.id)  # class-level attribute
                elif _self_attribute(node.target):
                    attributes.add(_self_attribute(node.target))
        elif isinstance(node, ast.Assign) and _creates(node.value, imports, provider_fqn):
            for target in node.targets:
                if isinstance(target, ast.Name):
                    variables.add(target.id)
                elif _self_attribute(target):
                    attributes.add(_self_attribute(target))
        elif isinstance(node, ast.arg) and _mentions(node.annotation, imports, provider_fqn):
            variables.add(node.arg)

    calls = []
    for node in ast.walk(source.tree):
        if not (isinstance(node, ast.Call) and isinstance(node.func, ast.Attribute)):
            continue
        receiver = node.func.value
        if (
            _self_attribute(receiver) in attributes
            or (isinstance(receiver, ast.Name) and receiver.id in variables)
            or _creates(receiver, imports, provider_fqn)
        ):
            calls.append((node.lineno, node.col_offset, node.func.attr))

    # ast.walk is breadth-first; report in source order
    return list(dict.fromkeys(name for _, _, name in sorted(calls)))


# ── Provider side ──────────────────────────────────────────────────


def _decorator_names(node: ast.FunctionDef | ast.AsyncFunctionDef) -> set[str]:
    names = set()
    for decorator in node.decorator_list:
        target = decorator.func if isinstance(decorator, ast.Call) else decorator
        if isinstance(target, ast.Name):
            names.add(target.id)
        elif isinstance(target, ast.Attribute):
            names.add(target.attr)
    return names


def _literal_default(node: ast.AST) -> str:
    try:
        ast.literal_eval(node)
    except ValueError:
        raise FixBlocked("Provider method defaults must be literals.")
    return ast.unparse(node)


def _signature(node: ast.FunctionDef | ast.AsyncFunctionDef, resolver: TypeResolver) -> Signature:
    args = node.args
    if args.vararg is not None or args.kwarg is not None:
        raise FixBlocked(UNRESOLVED)

    positional = [*args.posonlyargs, *args.args]
    defaults = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)
    positional, defaults = positional[1:], defaults[1:]  # drop self

    params = []
    for arg, default in zip(positional, defaults):
        params.append(_param(arg, default, resolver, keyword_only=False))
    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        params.append(_param(arg, default, resolver, keyword_only=True))

    returns = None
    if node.returns is not None:
        returns = resolver.parse(node.returns)
        if returns is None:
            raise FixBlocked(UNRESOLVED)

    return Signature(
        name=node.name,
        params=tuple(params),
        returns=returns,
        is_async=isinstance(node, ast.AsyncFunctionDef),
    )


def _param(arg: ast.arg, default: Optional[ast.AST], resolver: TypeResolver, keyword_only: bool) -> Param:
    type_ref = None
    if arg.annotation is not None:
        type_ref = resolver.parse(arg.annotation)
        if type_ref is None:
            raise FixBlocked(UNRESOLVED)
    return Param(
        name=arg.arg,
        type=type_ref,
        default=_literal_default(default) if default is not None else None,
        keyword_only=keyword_only,
    )


def extract_signatures(source: SourceFile, cls: ast.ClassDef, names: list[str]) -> list[Signature]:
    """Public instance methods of *cls*, limited to *names* when given.

    Raises:
        FixBlocked: A method uses types a bridge cannot carry, or a called
            method is not defined on the class itself
    """
    resolver = TypeResolver(source.imports, source.module, source.tree)
    found: dict[str, Signature] = {}

    for node in cls.body:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        if node.name.startswith("_") or _decorator_names(node) & _NON_INSTANCE_DECORATORS:
            continue
        if names and node.name not in names:
            continue
        if not (node.args.posonlyargs or node.args.args):
            raise FixBlocked(UNRESOLVED)
        found[node.name] = _signature(node, resolver)

    missing = [name for name in names if name not in found]
    if missing:
        raise FixBlocked(f'Provider method "{missing[0]}" not found on {cls.name}.')

    if names:
        return [found[name] for name in names]
    return list(found.values())
