"""App and component discovery.

Walks one directory level below the apps package. Every folder holding a
``manifest.py`` becomes an app; folders without one are ignored. Broken
manifests are reported as registry issues and skipped so that one bad app
never hides the rest of the project.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path

from ..exceptions import ManifestError
from ..logging_config import get_logger
from ..project import Project
from .manifest import MANIFEST_FILE, load_manifest
from .models import App, AppRegistry, Component, RegistryIssue
from .slug import is_valid_slug, slugify

logger = get_logger(__name__)

RESERVED_COMPONENT_DIRS = frozenset({"resources", "doc", "__pycache__"})


def is_reserved_dir(name: str) -> bool:
    return name in RESERVED_COMPONENT_DIRS or name.startswith((".", "_"))


def discover_components(directory: Path) -> list[Component]:
    """Non-reserved sub-directories of *directory*, sorted by name."""
    if not directory.is_dir():
        return []

    components = []
    for entry in sorted(directory.iterdir()):
        if not entry.is_dir() or is_reserved_dir(entry.name):
            continue
        components.append(Component(name=entry.name, slug=slugify(entry.name), path=entry))
    return components


def valid_mountpoint(mountpoint: str) -> bool:
    return mountpoint.startswith("/") and (mountpoint == "/" or not mountpoint.endswith("/"))


def discover_apps(project: Project) -> AppRegistry:
    """Build the app registry from the manifests on disk."""
    apps_dir = project.apps_dir
    if not apps_dir.is_dir():
        logger.debug(f"No apps directory at {apps_dir}")
        return AppRegistry(global_components=tuple(discover_components(project.components_dir)))

    apps: list[App] = []
    issues: list[RegistryIssue] = []

    for folder in sorted(apps_dir.iterdir()):
        manifest_path = folder / MANIFEST_FILE
        if not folder.is_dir() or is_reserved_dir(folder.name) or not manifest_path.is_file():
            continue

        rel = project.relative(manifest_path)
        try:
            manifest = load_manifest(manifest_path)
        except ManifestError as e:
            logger.warning(f"Skipping app {folder.name}: {e.message}")
            issues.append(RegistryIssue("CAPGATE.MANIFEST.INVALID", e.message, file=rel))
            continue

        if not is_valid_slug(manifest.app_id):
            issues.append(
                RegistryIssue(
                    "CAPGATE.APP_ID.INVALID",
                    f'Invalid appId "{manifest.app_id}".',
                    file=rel,
                    symbol=manifest.app_id,
                )
            )

        if manifest.mountpoint is not None and not valid_mountpoint(manifest.mountpoint):
            issues.append(
                RegistryIssue(
                    "CAPGATE.MOUNTPOINT.INVALID",
                    f'Invalid mountpoint "{manifest.mountpoint}".',
                    file=rel,
                    symbol=manifest.app_id,
                )
            )

        apps.append(
            App(
                folder=folder.name,
                path=folder,
                manifest_path=manifest_path,
                manifest=manifest,
                components=tuple(discover_components(folder)),
            )
        )

    issues.extend(_collisions(project, apps))
    logger.debug(f"Discovered {len(apps)} apps with {len(issues)} registry issues")

    return AppRegistry(
        apps=tuple(apps),
        global_components=tuple(discover_components(project.components_dir)),
        issues=tuple(issues),
    )


def _collisions(project: Project, apps: list[App]) -> list[RegistryIssue]:
    by_id: dict[str, list[App]] = defaultdict(list)
    by_mount: dict[str, list[App]] = defaultdict(list)
    for app in apps:
        by_id[app.app_id].append(app)
        if app.manifest.mountpoint is not None:
            by_mount[app.manifest.mountpoint].append(app)

    issues = []
    for app_id, owners in by_id.items():
        if len(owners) < 2:
            continue
        for app in owners:
            issues.append(
                RegistryIssue(
                    "CAPGATE.APP_ID.COLLISION",
                    f'AppId "{app_id}" is used by multiple apps.',
                    file=project.relative(app.manifest_path),
                    symbol=app_id,
                )
            )

    for mountpoint, owners in by_mount.items():
        if len(owners) < 2:
            continue
        for app in owners:
            issues.append(
                RegistryIssue(
                    "CAPGATE.MOUNTPOINT.COLLISION",
                    f'Mountpoint "{mountpoint}" is used by multiple apps.',
                    file=project.relative(app.manifest_path),
                    symbol=app.app_id,
                )
            )
    return issues
