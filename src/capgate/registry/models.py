"""Immutable registry value objects, rebuilt from disk on every run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..report.models import Finding, FindingLocation, Severity


@dataclass(frozen=True)
class Consumes:
    capability_id: str
    required: bool = True
    contract: Optional[str] = None


@dataclass(frozen=True)
class Provides:
    capability_id: str
    contract: str


@dataclass(frozen=True)
class Events:
    publishes: tuple[str, ...] = ()
    subscribes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Manifest:
    app_id: str
    name: str
    mountpoint: Optional[str]
    consumes: tuple[Consumes, ...] = ()
    provides: tuple[Provides, ...] = ()
    events: Events = field(default_factory=Events)


@dataclass(frozen=True)
class Component:
    name: str  # folder name
    slug: str
    path: Path


@dataclass(frozen=True)
class App:
    folder: str
    path: Path
    manifest_path: Path
    manifest: Manifest
    components: tuple[Component, ...] = ()

    @property
    def app_id(self) -> str:
        return self.manifest.app_id


@dataclass(frozen=True)
class RegistryIssue:
    rule_key: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    symbol: Optional[str] = None

    def to_finding(self) -> Finding:
        return Finding(
            rule_key=self.rule_key,
            severity=Severity.BLOCKER,
            message=self.message,
            location=FindingLocation(self.file, self.line, self.symbol),
        )


@dataclass(frozen=True)
class CapabilityProvider:
    capability_id: str
    contract: str
    class_name: str  # dotted name of the implementing class
    priority: int = 0
    file: Optional[str] = None
    line: Optional[int] = None


@dataclass(frozen=True)
class AppRegistry:
    apps: tuple[App, ...] = ()
    global_components: tuple[Component, ...] = ()
    issues: tuple[RegistryIssue, ...] = ()

    def by_folder(self, folder: str) -> Optional[App]:
        for app in self.apps:
            if app.folder == folder:
                return app
        return None

    def by_id(self, app_id: str) -> Optional[App]:
        for app in self.apps:
            if app.app_id == app_id:
                return app
        return None


@dataclass(frozen=True)
class ProviderRegistry:
    providers: tuple[CapabilityProvider, ...] = ()
    issues: tuple[RegistryIssue, ...] = ()

    def for_capability(self, capability_id: str) -> list[CapabilityProvider]:
        return [p for p in self.providers if p.capability_id == capability_id]
