"""Configuration loading and management for capgate.

Configuration sources are merged in priority order:
    1. Defaults (defined in CapgateConfig)
    2. Global config (~/.capgate.toml)
    3. Project config (<project>/capgate.toml)
    4. Explicit config file (--config)
    5. Environment variables (CAPGATE_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(Path("."), root_package="shop")
    >>> config.apps_namespace
    'shop.apps'
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]
LinkScheme = Literal["none", "file", "vscode"]

PROJECT_CONFIG_NAME = "capgate.toml"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class CapgateConfig:
    """Settings for one capgate run.

    Attributes:
        Source layout:
            source_dir: Directory (relative to the project root) holding the
                root package
            root_package: Root namespace of the analyzed code base
            apps_package: Sub-package of the root holding one folder per app
            components_package: Sub-package of the root holding global components

        Outputs:
            state_dir: Reports, graph exports and fix runs are written here
            lock_file: Advisory write lock, relative to the project root
            public_dir: Asset publishing target used by the collision check

        Scanning:
            report_unparsable: Emit a WARNING for files that fail to parse
                instead of only logging them
            forbidden_types: Extra dotted names treated as service locators

        Reports:
            report_links: Render file locations in review reports as links
            report_link_scheme: none | file | vscode

        Output control:
            verbosity: Logging verbosity level
    """

    source_dir: str = "src"
    root_package: str = "app"
    apps_package: str = "apps"
    components_package: str = "components"

    state_dir: str = "state"
    lock_file: str = "var/lock/capgate.lock"
    public_dir: str = "public"

    report_unparsable: bool = False
    forbidden_types: list[str] = field(default_factory=list)

    report_links: bool = False
    report_link_scheme: LinkScheme = "none"

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        for key in ("root_package", "apps_package", "components_package"):
            value = getattr(self, key)
            if not _IDENTIFIER.match(value):
                raise InvalidConfigError(key, value, "must be a Python identifier")

        if self.apps_package == self.components_package:
            raise InvalidConfigError(
                "components_package",
                self.components_package,
                "must differ from apps_package",
            )

        if self.report_link_scheme not in ("none", "file", "vscode"):
            raise InvalidConfigError(
                "report_link_scheme", self.report_link_scheme, "expected none, file or vscode"
            )

        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet, normal or verbose")

        for name in self.forbidden_types:
            if not isinstance(name, str) or "." not in name:
                raise InvalidConfigError("forbidden_types", name, "expected a dotted name")

    @property
    def apps_namespace(self) -> str:
        return f"{self.root_package}.{self.apps_package}"

    @property
    def components_namespace(self) -> str:
        return f"{self.root_package}.{self.components_package}"


def load_config(
    project_root: Optional[Path] = None, config_file: Optional[Path] = None, **overrides
) -> CapgateConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        project_root: Root of the analyzed project (defaults to cwd)
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated CapgateConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    root = project_root if project_root is not None else Path.cwd()
    merged: dict = {}

    global_config = Path.home() / ".capgate.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = root / PROJECT_CONFIG_NAME
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update(overrides)

    # [reports.links] table maps onto the flat report_link* fields
    reports = merged.pop("reports", None)
    if isinstance(reports, dict):
        links = reports.get("links", {})
        if not isinstance(links, dict):
            raise ConfigurationError("Invalid [reports.links] config: expected a table")
        if "enabled" in links:
            merged.setdefault("report_links", bool(links["enabled"]))
        if "scheme" in links:
            merged.setdefault("report_link_scheme", str(links["scheme"]))

    try:
        return CapgateConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from CAPGATE_* environment variables.

    Supported environment variables:
        CAPGATE_SOURCE_DIR: str
        CAPGATE_ROOT_PACKAGE: str
        CAPGATE_APPS_PACKAGE: str
        CAPGATE_COMPONENTS_PACKAGE: str
        CAPGATE_STATE_DIR: str
        CAPGATE_LOCK_FILE: str
        CAPGATE_PUBLIC_DIR: str
        CAPGATE_REPORT_UNPARSABLE: bool (true/false/1/0)
        CAPGATE_REPORT_LINKS: bool
        CAPGATE_REPORT_LINK_SCHEME: none/file/vscode
        CAPGATE_VERBOSITY: quiet/normal/verbose

    Returns:
        Dict of field_name -> parsed_value for any CAPGATE_* vars found.
    """
    type_hints = get_type_hints(CapgateConfig)

    result: dict[str, Any] = {}

    for field_name in CapgateConfig.__dataclass_fields__:
        env_key = f"CAPGATE_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns:
        Parsed value or None if the field is not settable from the environment

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Lists are too awkward to express in one variable
    if origin is list or type_hint is list:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If TOML parsing fails
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
