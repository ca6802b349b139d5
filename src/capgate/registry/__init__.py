"""App, component and provider registries."""

from .discovery import discover_apps, discover_components
from .models import (
    App,
    AppRegistry,
    CapabilityProvider,
    Component,
    Consumes,
    Events,
    Manifest,
    Provides,
    ProviderRegistry,
    RegistryIssue,
)
from .providers import discover_providers

__all__ = [
    "App",
    "AppRegistry",
    "CapabilityProvider",
    "Component",
    "Consumes",
    "Events",
    "Manifest",
    "Provides",
    "ProviderRegistry",
    "RegistryIssue",
    "discover_apps",
    "discover_components",
    "discover_providers",
]
