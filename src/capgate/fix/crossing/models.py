"""Value objects of a crossing fix plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ...project import Project
from ...registry.models import App
from ...registry.slug import slugify, snake_case
from ...report.models import Finding
from .types import TypeRef

INTERFACE_SUFFIX = "Interface"
ENTITY_RULE = "crossing.entity_to_interface"
BRIDGE_MARKER = ".capgate-bridge"


# ── Provider surface ───────────────────────────────────────────────


@dataclass(frozen=True)
class Param:
    name: str
    type: Optional[TypeRef]
    default: Optional[str] = None  # source text of a literal default
    keyword_only: bool = False


@dataclass(frozen=True)
class DtoSpec:
    source_fqn: str
    class_name: str
    module: str
    fields: tuple[tuple[str, TypeRef], ...]

    @property
    def fqn(self) -> str:
        return f"{self.module}.{self.class_name}"

    @property
    def mapper(self) -> str:
        return f"_to_{snake_case(self.class_name)}"


@dataclass(frozen=True)
class Signature:
    name: str
    params: tuple[Param, ...]
    returns: Optional[TypeRef]  # None when unannotated
    is_async: bool = False
    dto: Optional[DtoSpec] = None  # set when the return type maps to a DTO


# ── Naming ─────────────────────────────────────────────────────────


def contract_name(provider_fqn: str) -> str:
    short = provider_fqn.rsplit(".", 1)[-1]
    return short if short.endswith(INTERFACE_SUFFIX) else short + INTERFACE_SUFFIX


def contract_base(contract: str) -> str:
    return contract[: -len(INTERFACE_SUFFIX)] if contract.endswith(INTERFACE_SUFFIX) else contract


@dataclass(frozen=True)
class BridgeNames:
    """Every name generated for one provider class."""

    provider_folder: str
    contract: str
    capability: str
    package: str  # bridge component package
    bridge_dir: Path
    adapter_package: str

    @classmethod
    def build(cls, project: Project, provider_app: App, provider_fqn: str) -> "BridgeNames":
        contract = contract_name(provider_fqn)
        folder = provider_app.folder
        package_name = f"bridge_{folder}"
        return cls(
            provider_folder=folder,
            contract=contract,
            capability=f"bridge.{provider_app.app_id}.{slugify(contract_base(contract))}",
            package=f"{project.config.components_namespace}.{package_name}",
            bridge_dir=project.components_dir / package_name,
            adapter_package=f"{project.config.apps_namespace}.{folder}.service.bridge",
        )

    @property
    def module_stem(self) -> str:
        return snake_case(self.contract)

    @property
    def contract_module(self) -> str:
        return f"{self.package}.contract.{self.module_stem}"

    @property
    def contract_fqn(self) -> str:
        return f"{self.contract_module}.{self.contract}"

    @property
    def noop_class(self) -> str:
        return f"{self.contract}NoOp"

    @property
    def noop_module(self) -> str:
        return f"{self.package}.noop.{self.module_stem}_noop"

    @property
    def adapter_class(self) -> str:
        return f"{self.contract}Adapter"

    @property
    def adapter_module(self) -> str:
        return f"{self.adapter_package}.{self.module_stem}_adapter"

    @property
    def property_name(self) -> str:
        """Attribute the consumer holds the injected contract in."""
        return snake_case(contract_base(self.contract))

    def dto_module(self, class_name: str) -> str:
        return f"{self.package}.dto.{snake_case(class_name)}"


# ── Targets ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ServiceTarget:
    finding_id: str
    finding: Finding
    consumer: Path
    consumer_app: App
    provider_app: App
    provider_fqn: str
    names: BridgeNames
    signatures: tuple[Signature, ...]
    dtos: tuple[DtoSpec, ...] = ()


@dataclass(frozen=True)
class EntityTarget:
    finding_id: str
    finding: Finding
    consumer: Path
    consumer_app: App
    provider_app: App
    entity_fqn: str
    entity_name: str
    interface_module: str

    @property
    def interface_name(self) -> str:
        return self.entity_name + INTERFACE_SUFFIX

    @property
    def interface_fqn(self) -> str:
        return f"{self.interface_module}.{self.interface_name}"


Target = Union[ServiceTarget, EntityTarget]


@dataclass(frozen=True)
class PlanItem:
    finding_id: str
    fixable: bool
    summary: Optional[str] = None
    reason: Optional[str] = None
    rule_key: str = "crossing"
    target: Optional[Target] = field(default=None, compare=False)

    @classmethod
    def blocked(cls, finding_id: str, reason: str) -> "PlanItem":
        return cls(finding_id=finding_id, fixable=False, reason=reason)
