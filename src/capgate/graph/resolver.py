"""Capability graph: every consume matched to its winning provider.

For one capability the providers are ranked by priority (highest first),
then by class name so that ties resolve the same way on every run. The
first one wins. A no-op provider still satisfies a required consume but
marks the consuming app DEGRADED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..registry.models import App, AppRegistry, CapabilityProvider, Consumes, ProviderRegistry
from ..runtime import NOOP_PRIORITY

STATUS_OK = "OK"
STATUS_DEGRADED = "DEGRADED"
STATUS_SAFE_MODE = "SAFE_MODE"


# ── Resolved graph ─────────────────────────────────────────────────


@dataclass(frozen=True)
class ResolvedConsume:
    consume: Consumes
    contract: Optional[str]
    providers: tuple[CapabilityProvider, ...] = ()
    winner: Optional[CapabilityProvider] = None

    @property
    def capability_id(self) -> str:
        return self.consume.capability_id

    @property
    def missing(self) -> bool:
        return self.winner is None

    @property
    def degraded(self) -> bool:
        return self.winner is not None and self.winner.priority == NOOP_PRIORITY


@dataclass(frozen=True)
class ResolvedApp:
    app: App
    consumes: tuple[ResolvedConsume, ...] = ()
    provides: tuple[dict, ...] = ()

    @property
    def missing_required(self) -> list[str]:
        return [c.capability_id for c in self.consumes if c.missing and c.consume.required]

    @property
    def missing_optional(self) -> list[str]:
        return [c.capability_id for c in self.consumes if c.missing and not c.consume.required]

    @property
    def degraded(self) -> list[str]:
        return [c.capability_id for c in self.consumes if c.degraded]

    @property
    def status(self) -> str:
        if self.missing_required:
            return STATUS_SAFE_MODE
        if self.missing_optional or self.degraded:
            return STATUS_DEGRADED
        return STATUS_OK


@dataclass(frozen=True)
class CapabilityGraph:
    apps: tuple[ResolvedApp, ...] = field(default_factory=tuple)

    def app(self, app_id: str) -> Optional[ResolvedApp]:
        for resolved in self.apps:
            if resolved.app.app_id == app_id:
                return resolved
        return None


# ── Resolution ─────────────────────────────────────────────────────


def rank_providers(providers: list[CapabilityProvider]) -> list[CapabilityProvider]:
    return sorted(providers, key=lambda p: (-p.priority, p.class_name))


def winning_provider(providers: list[CapabilityProvider]) -> Optional[CapabilityProvider]:
    ranked = rank_providers(providers)
    return ranked[0] if ranked else None


def resolve(apps: AppRegistry, providers: ProviderRegistry) -> CapabilityGraph:
    """Match every consume of every app against the provider catalog."""
    resolved_apps = []
    for app in apps.apps:
        consumes = []
        for consume in app.manifest.consumes:
            candidates = rank_providers(providers.for_capability(consume.capability_id))
            winner = candidates[0] if candidates else None
            contract = consume.contract or (winner.contract if winner else None)
            consumes.append(
                ResolvedConsume(
                    consume=consume,
                    contract=contract,
                    providers=tuple(candidates),
                    winner=winner,
                )
            )

        provides = []
        for provide in app.manifest.provides:
            winner = winning_provider(
                [p for p in providers.for_capability(provide.capability_id) if p.priority != NOOP_PRIORITY]
            )
            provides.append(
                {
                    "capabilityId": provide.capability_id,
                    "contract": provide.contract,
                    "provider": winner.class_name if winner else None,
                }
            )

        resolved_apps.append(ResolvedApp(app=app, consumes=tuple(consumes), provides=tuple(provides)))

    return CapabilityGraph(apps=tuple(resolved_apps))
