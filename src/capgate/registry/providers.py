"""Static provider catalog.

Providers are classes decorated with ``capgate.runtime.provider``. The
decorator arguments are read from the AST, so the analyzed project is never
imported. The resolver only consumes the resulting flat list, and callers
may build that list themselves.
"""

from __future__ import annotations

import ast
from collections import defaultdict
from typing import Iterable, Optional

from ..logging_config import get_logger
from ..runtime import NOOP_PRIORITY
from ..scanning.names import ImportTable, dotted_name
from ..scanning.source import SourceFile, SourceIndex
from .models import CapabilityProvider, ProviderRegistry, RegistryIssue

logger = get_logger(__name__)

RUNTIME_MODULE = "capgate.runtime"
PROVIDER_DECORATOR = f"{RUNTIME_MODULE}.provider"
NOOP_PRIORITY_NAME = f"{RUNTIME_MODULE}.NOOP_PRIORITY"


class _InvalidProvider(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def discover_providers(index: SourceIndex) -> ProviderRegistry:
    """Collect provider declarations below the project's root package."""
    providers: list[CapabilityProvider] = []
    issues: list[RegistryIssue] = []

    for source in index.files():
        for node in ast.walk(source.tree):
            if not isinstance(node, ast.ClassDef):
                continue
            decorator = _provider_decorator(node, source.imports)
            if decorator is None:
                continue
            class_name = f"{source.module}.{node.name}" if source.module else node.name
            try:
                providers.append(_read_provider(source, node, decorator, class_name))
            except _InvalidProvider as e:
                issues.append(
                    RegistryIssue(
                        "CAPGATE.PROVIDER.INVALID",
                        e.message,
                        file=source.rel,
                        line=node.lineno,
                        symbol=class_name,
                    )
                )

    issues.extend(duplicate_issues(providers))
    logger.debug(f"Discovered {len(providers)} providers")
    return ProviderRegistry(providers=tuple(providers), issues=tuple(issues))


def duplicate_issues(providers: Iterable[CapabilityProvider]) -> list[RegistryIssue]:
    """Providers of one capability sharing a priority cannot be ranked."""
    groups: dict[tuple[str, int], list[CapabilityProvider]] = defaultdict(list)
    for entry in providers:
        groups[(entry.capability_id, entry.priority)].append(entry)

    issues = []
    for (capability_id, priority), entries in groups.items():
        if len(entries) < 2:
            continue
        names = ", ".join(sorted(e.class_name for e in entries))
        issues.append(
            RegistryIssue(
                "CAPGATE.PROVIDER.DUPLICATE",
                f'Capability "{capability_id}" has multiple providers with priority {priority}: {names}.',
                file=entries[0].file,
                line=entries[0].line,
                symbol=capability_id,
            )
        )
    return issues


def _provider_decorator(node: ast.ClassDef, imports: ImportTable) -> Optional[ast.Call]:
    for decorator in node.decorator_list:
        if isinstance(decorator, ast.Call) and imports.resolve(decorator.func) == PROVIDER_DECORATOR:
            return decorator
    return None


def _read_provider(
    source: SourceFile, node: ast.ClassDef, decorator: ast.Call, class_name: str
) -> CapabilityProvider:
    keywords = {k.arg: k.value for k in decorator.keywords if k.arg}

    capability = keywords.get("capability")
    contract_node = keywords.get("contract")
    if capability is None or contract_node is None:
        raise _InvalidProvider(f"Provider {class_name} is missing capability or contract.")

    if not (isinstance(capability, ast.Constant) and isinstance(capability.value, str) and capability.value):
        raise _InvalidProvider(f"Provider {class_name} must declare its capability as a string literal.")

    contract = _contract_name(source, contract_node)
    if contract is None:
        raise _InvalidProvider(f"Provider {class_name} has an unresolvable contract.")

    priority = _priority(keywords.get("priority"), source.imports)
    if priority is None:
        raise _InvalidProvider(f"Provider {class_name} has an invalid priority.")

    bases = {_contract_name(source, base) for base in node.bases}
    if contract not in bases:
        raise _InvalidProvider(f"Provider {class_name} must implement {contract}.")

    return CapabilityProvider(
        capability_id=capability.value,
        contract=contract,
        class_name=class_name,
        priority=priority,
        file=source.rel,
        line=node.lineno,
    )


def _contract_name(source: SourceFile, node: ast.AST) -> Optional[str]:
    """Dotted name of a contract given as a class reference or string."""
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value or None
    resolved = source.imports.resolve(node)
    if resolved is not None:
        return resolved
    name = dotted_name(node)
    if name is None:
        return None
    # A contract defined in the same module
    return f"{source.module}.{name}" if source.module else name


def _priority(node: Optional[ast.AST], imports: ImportTable) -> Optional[int]:
    if node is None:
        return 0
    if isinstance(node, ast.Constant) and type(node.value) is int:
        return node.value
    if (
        isinstance(node, ast.UnaryOp)
        and isinstance(node.op, ast.USub)
        and isinstance(node.operand, ast.Constant)
        and type(node.operand.value) is int
    ):
        return -node.operand.value
    if imports.resolve(node) == NOOP_PRIORITY_NAME:
        return NOOP_PRIORITY
    return None
