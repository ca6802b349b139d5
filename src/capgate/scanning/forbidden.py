"""Service locator usage: container types in hints and container lookups."""

from __future__ import annotations

import ast
from typing import Iterable

from ..report.models import Finding, FindingLocation, Severity
from .references import TYPE_HINT, ReferenceCollector
from .source import SourceFile, SourceIndex

RULE_KEY = "CAPGATE.RUNTIME.SERVICE_LOCATOR_FORBIDDEN"
HINT = "Inject explicit dependencies instead of containers."

DEFAULT_FORBIDDEN_TYPES = (
    "dependency_injector.containers.Container",
    "dependency_injector.containers.DeclarativeContainer",
    "dependency_injector.containers.DynamicContainer",
    "punq.Container",
    "lagom.Container",
    "injector.Injector",
    "kink.Container",
    "svcs.Container",
    "svcs.Registry",
)

_CONTAINER_NAMES = frozenset({"container", "_container"})


def _is_container(node: ast.AST) -> bool:
    if isinstance(node, ast.Name):
        return node.id in _CONTAINER_NAMES
    return (
        isinstance(node, ast.Attribute)
        and node.attr in _CONTAINER_NAMES
        and isinstance(node.value, ast.Name)
        and node.value.id == "self"
    )


class _CallFinder(ast.NodeVisitor):
    """Container lookups together with the qualified name of their scope."""

    def __init__(self):
        self.scope: list[str] = []
        self.calls: list[tuple[ast.Call, str, str]] = []

    def _scoped(self, node) -> None:
        self.scope.append(node.name)
        self.generic_visit(node)
        self.scope.pop()

    visit_ClassDef = _scoped
    visit_FunctionDef = _scoped
    visit_AsyncFunctionDef = _scoped

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        qualname = ".".join(self.scope) or "<module>"
        if isinstance(func, ast.Attribute) and func.attr == "get" and _is_container(func.value):
            self.calls.append((node, qualname, "method-call|get"))
        elif (isinstance(func, ast.Name) and func.id == "get_container") or (
            isinstance(func, ast.Attribute) and func.attr == "get_container"
        ):
            self.calls.append((node, qualname, "static-call|get_container"))
        self.generic_visit(node)


class ForbiddenPatternScanner:
    def __init__(self, extra_types: Iterable[str] = ()):
        self.forbidden_types = frozenset(DEFAULT_FORBIDDEN_TYPES) | frozenset(extra_types)

    def scan(self, index: SourceIndex) -> list[Finding]:
        findings = []
        for source in index.boundary_files():
            findings.extend(self.scan_file(source))
        return findings

    def scan_file(self, source: SourceFile) -> list[Finding]:
        findings = []
        for ref in ReferenceCollector.collect(source.tree, source.imports):
            if ref.kind == TYPE_HINT and ref.fqn in self.forbidden_types:
                findings.append(
                    Finding(
                        rule_key=RULE_KEY,
                        severity=Severity.BLOCKER,
                        message=f'Service locator type "{ref.fqn}" is forbidden.',
                        location=FindingLocation(source.rel, ref.line, ref.fqn),
                        details={"primary": f"typehint|{ref.fqn}"},
                        hint=HINT,
                    )
                )

        finder = _CallFinder()
        finder.visit(source.tree)
        for call, qualname, primary in finder.calls:
            if primary.startswith("method-call"):
                message = "Container lookups are forbidden."
            else:
                message = "get_container() calls are forbidden."
            findings.append(
                Finding(
                    rule_key=RULE_KEY,
                    severity=Severity.BLOCKER,
                    message=message,
                    location=FindingLocation(source.rel, call.lineno, qualname),
                    details={"primary": primary},
                    hint=HINT,
                )
            )
        return findings
