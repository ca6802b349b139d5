"""
Source text of generated bridge modules.

Rendering is deterministic: the same plan always yields byte-identical
files, which is what lets an apply compare against files written by an
earlier run instead of overwriting them.
"""

from __future__ import annotations

import sys
from collections import defaultdict
from typing import Iterable, Optional

from .models import BridgeNames, DtoSpec, EntityTarget, Param, ServiceTarget, Signature
from .types import BUILTIN, DATETIME, NONE, TypeRef

RUNTIME_MODULE = "capgate.runtime"

# Fallback values returned by no-op providers
DEFAULTS = {
    "str": '""',
    "bytes": 'b""',
    "bool": "False",
    "int": "0",
    "float": "0",
    "list": "[]",
    "dict": "{}",
    "tuple": "()",
    "set": "set()",
    "frozenset": "frozenset()",
}
DATETIME_DEFAULTS = {
    "datetime": "datetime.fromtimestamp(0, tz=timezone.utc)",
    "date": "date(1970, 1, 1)",
}


class ImportBlock:
    """``from x import y`` lines grouped stdlib, capgate, project."""

    def __init__(self):
        self._names: dict[str, set[str]] = defaultdict(set)

    def add(self, module: str, name: str) -> None:
        self._names[module].add(name)

    def extend(self, pairs: Iterable[tuple[str, str]]) -> None:
        for module, name in pairs:
            self.add(module, name)

    def render(self) -> list[str]:
        groups: list[list[str]] = [[], [], []]
        for module in sorted(self._names):
            line = f"from {module} import {', '.join(sorted(self._names[module]))}"
            top = module.split(".", 1)[0]
            if top in sys.stdlib_module_names:
                groups[0].append(line)
            elif top == "capgate":
                groups[1].append(line)
            else:
                groups[2].append(line)

        lines: list[str] = []
        for group in groups:
            if group:
                lines.extend(group)
                lines.append("")
        return lines


def _module_text(docstring: str, imports: ImportBlock, body: list[str]) -> str:
    lines = [f'"""{docstring}"""', ""]
    lines.extend(imports.render())
    lines.append("")
    lines.extend(body)
    return "\n".join(lines).rstrip("\n") + "\n"


def _type_imports(type_ref: Optional[TypeRef]) -> tuple[tuple[str, str], ...]:
    return type_ref.imports if type_ref is not None else ()


def _signature_imports(signatures: Iterable[Signature], imports: ImportBlock) -> None:
    for signature in signatures:
        for param in signature.params:
            imports.extend(_type_imports(param.type))
        imports.extend(_type_imports(signature.returns))


# ── Method signatures ──────────────────────────────────────────────


def _render_param(param: Param) -> str:
    text = param.name
    if param.type is not None:
        text += f": {param.type.render()}"
        if param.default is not None:
            text += f" = {param.default}"
    elif param.default is not None:
        text += f"={param.default}"
    return text


def _parameter_list(params: tuple[Param, ...]) -> str:
    parts = ["self"]
    star = False
    for param in params:
        if param.keyword_only and not star:
            parts.append("*")
            star = True
        parts.append(_render_param(param))
    return ", ".join(parts)


def _def_line(signature: Signature) -> str:
    prefix = "async def" if signature.is_async else "def"
    returns = f" -> {signature.returns.render()}" if signature.returns is not None else ""
    return f"    {prefix} {signature.name}({_parameter_list(signature.params)}){returns}:"


def _call_arguments(params: tuple[Param, ...]) -> str:
    return ", ".join(f"{p.name}={p.name}" if p.keyword_only else p.name for p in params)


def default_value(type_ref: Optional[TypeRef]) -> str:
    if type_ref is None or type_ref.nullable or type_ref.kind == NONE:
        return "None"
    if type_ref.kind == BUILTIN:
        return DEFAULTS.get(type_ref.name, "None")
    if type_ref.kind == DATETIME:
        return DATETIME_DEFAULTS[type_ref.name]
    return "None"


def _default_imports(type_ref: Optional[TypeRef]) -> list[tuple[str, str]]:
    if type_ref is None or type_ref.nullable or type_ref.kind != DATETIME:
        return []
    if type_ref.name == "datetime":
        return [("datetime", "datetime"), ("datetime", "timezone")]
    return [("datetime", "date")]


# ── Bridge modules ─────────────────────────────────────────────────


def render_contract(names: BridgeNames, signatures: tuple[Signature, ...]) -> str:
    imports = ImportBlock()
    imports.add("abc", "ABC")
    if signatures:
        imports.add("abc", "abstractmethod")
    _signature_imports(signatures, imports)

    body = [f"class {names.contract}(ABC):"]
    if not signatures:
        body.append("    pass")
    for index, signature in enumerate(signatures):
        if index:
            body.append("")
        body.append("    @abstractmethod")
        body.append(_def_line(signature)[:-1] + ": ...")

    return _module_text(f"Contract of the {names.capability} capability.", imports, body)


def render_noop(names: BridgeNames, signatures: tuple[Signature, ...]) -> str:
    imports = ImportBlock()
    imports.add(RUNTIME_MODULE, "NOOP_PRIORITY")
    imports.add(RUNTIME_MODULE, "provider")
    imports.add(names.contract_module, names.contract)
    _signature_imports(signatures, imports)
    for signature in signatures:
        imports.extend(_default_imports(signature.returns))

    body = [
        f'@provider(capability="{names.capability}", contract={names.contract}, priority=NOOP_PRIORITY)',
        f"class {names.noop_class}({names.contract}):",
        f'    """Fallback used while no real {names.capability} provider is installed."""',
    ]
    for signature in signatures:
        body.append("")
        body.append(_def_line(signature))
        body.append(f"        return {default_value(signature.returns)}")

    return _module_text(f"No-op provider of the {names.capability} capability.", imports, body)


def render_adapter(target: ServiceTarget) -> str:
    names = target.names
    provider_module, _, provider_class = target.provider_fqn.rpartition(".")

    imports = ImportBlock()
    imports.add(RUNTIME_MODULE, "provider")
    imports.add(names.contract_module, names.contract)
    imports.add(provider_module, provider_class)
    _signature_imports(target.signatures, imports)
    for dto in target.dtos:
        module, _, name = dto.source_fqn.rpartition(".")
        imports.add(module, name)

    body = [
        f'@provider(capability="{names.capability}", contract={names.contract}, priority=0)',
        f"class {names.adapter_class}({names.contract}):",
        f"    def __init__(self, delegate: {provider_class}):",
        "        self._delegate = delegate",
    ]

    for signature in target.signatures:
        call = f"self._delegate.{signature.name}({_call_arguments(signature.params)})"
        if signature.is_async:
            call = f"await {call}"
        if signature.dto is not None:
            call = f"self.{signature.dto.mapper}({call})"
        body.append("")
        body.append(_def_line(signature))
        body.append(f"        return {call}")

    for dto in target.dtos:
        body.append("")
        body.extend(_render_mapper(dto))

    return _module_text(
        f"Adapter exposing {provider_class} as the {names.capability} capability.", imports, body
    )


def _render_mapper(dto: DtoSpec) -> list[str]:
    source_class = dto.source_fqn.rsplit(".", 1)[-1]
    lines = [
        "    @staticmethod",
        f"    def {dto.mapper}(value: {source_class} | None) -> {dto.class_name} | None:",
        "        if value is None:",
        "            return None",
    ]
    if not dto.fields:
        lines.append(f"        return {dto.class_name}()")
        return lines

    lines.append(f"        return {dto.class_name}(")
    for name, _ in dto.fields:
        lines.append(f"            {name}=value.{name},")
    lines.append("        )")
    return lines


def render_dto(dto: DtoSpec) -> str:
    imports = ImportBlock()
    imports.add("dataclasses", "dataclass")
    for _, type_ref in dto.fields:
        imports.extend(type_ref.imports)

    body = ["@dataclass(frozen=True)", f"class {dto.class_name}:"]
    if not dto.fields:
        body.append("    pass")
    for name, type_ref in dto.fields:
        body.append(f"    {name}: {type_ref.render()}")

    source_class = dto.source_fqn.rsplit(".", 1)[-1]
    return _module_text(f"Boundary copy of {source_class}.", imports, body)


def render_entity_interface(target: EntityTarget) -> str:
    imports = ImportBlock()
    imports.add("typing", "Protocol")
    body = [
        f"class {target.interface_name}(Protocol):",
        f'    """What code outside the {target.provider_app.app_id} app may rely on about {target.entity_name}."""',
        "",
        "    def get_id(self) -> str: ...",
    ]
    return _module_text(
        f"Shared contract of the {target.provider_app.app_id} entity {target.entity_name}.", imports, body
    )


__all__ = [
    "default_value",
    "render_adapter",
    "render_contract",
    "render_dto",
    "render_entity_interface",
    "render_noop",
]
