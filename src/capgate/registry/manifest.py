"""App manifest reading, validation and rewriting.

A manifest is a ``manifest.py`` module holding a single literal assignment::

    MANIFEST = {
        "appId": "billing",
        "name": "Billing",
        "mountpoint": "/billing",
        "consumes": ["bridge.inventory.stock-service"],
        "provides": [],
        "events": {"publishes": [], "subscribes": []},
    }

The file is never imported. It is parsed with :mod:`ast` and the value is
read with :func:`ast.literal_eval`, so a manifest cannot run code.
"""

from __future__ import annotations

import ast
import json
from pathlib import Path
from typing import Any, Optional

from ..editing import SourceEditor
from ..exceptions import ManifestError
from .models import Consumes, Events, Manifest, Provides

MANIFEST_FILE = "manifest.py"
MANIFEST_VARIABLE = "MANIFEST"
REQUIRED_KEYS = ("appId", "name", "mountpoint", "consumes")


def _find_assignment(tree: ast.Module) -> Optional[ast.stmt]:
    for node in tree.body:
        if isinstance(node, ast.Assign):
            if any(isinstance(t, ast.Name) and t.id == MANIFEST_VARIABLE for t in node.targets):
                return node
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            if isinstance(node.target, ast.Name) and node.target.id == MANIFEST_VARIABLE:
                return node
    return None


def read_manifest_data(path: Path) -> tuple[dict[str, Any], ast.stmt, str]:
    """Return (data, assignment node, source) for a manifest file."""
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Manifest cannot be read: {e}", path)

    try:
        tree = ast.parse(source, filename=str(path))
    except SyntaxError as e:
        raise ManifestError(f"Manifest is not valid Python: {e.msg} (line {e.lineno})", path)

    assignment = _find_assignment(tree)
    if assignment is None:
        raise ManifestError(f"Manifest must assign a {MANIFEST_VARIABLE} dict.", path)

    try:
        data = ast.literal_eval(assignment.value)
    except ValueError:
        raise ManifestError(f"{MANIFEST_VARIABLE} must be a literal dict.", path)

    if not isinstance(data, dict):
        raise ManifestError(f"{MANIFEST_VARIABLE} must be a dict.", path)

    return data, assignment, source


def parse_manifest(data: dict[str, Any], path: Optional[Path] = None) -> Manifest:
    """Validate manifest structure and normalize it into a :class:`Manifest`.

    Bare strings in ``consumes`` are required capabilities. Identifier and
    mountpoint formats are checked by discovery, not here.
    """
    for key in REQUIRED_KEYS:
        if key not in data:
            raise ManifestError(f'Manifest is missing required key "{key}".', path)

    app_id = data["appId"]
    name = data["name"]
    mountpoint = data["mountpoint"]
    if not isinstance(app_id, str) or not app_id:
        raise ManifestError('"appId" must be a non-empty string.', path)
    if not isinstance(name, str) or not name:
        raise ManifestError('"name" must be a non-empty string.', path)
    if mountpoint is not None and not isinstance(mountpoint, str):
        raise ManifestError('"mountpoint" must be a string or None.', path)

    return Manifest(
        app_id=app_id,
        name=name,
        mountpoint=mountpoint,
        consumes=tuple(_parse_consumes(data["consumes"], path)),
        provides=tuple(_parse_provides(data.get("provides", []), path)),
        events=_parse_events(data.get("events", {}), path),
    )


def _parse_consumes(raw: Any, path: Optional[Path]) -> list[Consumes]:
    if not isinstance(raw, list):
        raise ManifestError('"consumes" must be a list.', path)

    result = []
    for entry in raw:
        if isinstance(entry, str):
            result.append(Consumes(capability_id=entry, required=True))
            continue
        if not isinstance(entry, dict):
            raise ManifestError('"consumes" entries must be strings or dicts.', path)
        capability_id = entry.get("capabilityId")
        if not isinstance(capability_id, str) or not capability_id:
            raise ManifestError('"consumes" entry is missing "capabilityId".', path)
        required = entry.get("required", True)
        if not isinstance(required, bool):
            raise ManifestError(f'"required" for "{capability_id}" must be a bool.', path)
        contract = entry.get("contract")
        if contract is not None and not isinstance(contract, str):
            raise ManifestError(f'"contract" for "{capability_id}" must be a string.', path)
        result.append(Consumes(capability_id=capability_id, required=required, contract=contract))
    return result


def _parse_provides(raw: Any, path: Optional[Path]) -> list[Provides]:
    if not isinstance(raw, list):
        raise ManifestError('"provides" must be a list.', path)

    result = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ManifestError('"provides" entries must be dicts.', path)
        capability_id = entry.get("capabilityId")
        contract = entry.get("contract")
        if not isinstance(capability_id, str) or not capability_id:
            raise ManifestError('"provides" entry is missing "capabilityId".', path)
        if not isinstance(contract, str) or not contract:
            raise ManifestError(f'"provides" entry "{capability_id}" is missing "contract".', path)
        result.append(Provides(capability_id=capability_id, contract=contract))
    return result


def _parse_events(raw: Any, path: Optional[Path]) -> Events:
    if not isinstance(raw, dict):
        raise ManifestError('"events" must be a dict.', path)

    lists = {}
    for key in ("publishes", "subscribes"):
        value = raw.get(key, [])
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ManifestError(f'"events.{key}" must be a list of strings.', path)
        lists[key] = tuple(value)
    return Events(**lists)


def load_manifest(path: Path) -> Manifest:
    data, _, _ = read_manifest_data(path)
    return parse_manifest(data, path)


# -- rendering ---------------------------------------------------------------


def render_literal(value: Any, indent: int = 0) -> str:
    """Deterministic Python literal for manifest data (4-space indents)."""
    pad = "    " * indent
    if isinstance(value, dict):
        if not value:
            return "{}"
        lines = ["{"]
        for key, item in value.items():
            lines.append(f"{pad}    {render_literal(key)}: {render_literal(item, indent + 1)},")
        lines.append(pad + "}")
        return "\n".join(lines)
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        lines = ["["]
        for item in value:
            lines.append(f"{pad}    {render_literal(item, indent + 1)},")
        lines.append(pad + "]")
        return "\n".join(lines)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if value is None or isinstance(value, (bool, int, float)):
        return repr(value)
    raise ManifestError(f"Cannot render manifest value of type {type(value).__name__}")


def rewrite_manifest_source(source: str, assignment: ast.stmt, data: dict[str, Any]) -> str:
    """Replace only the MANIFEST value, leaving the rest of the file untouched."""
    editor = SourceEditor(source)
    editor.replace(assignment.value, render_literal(data))
    return editor.apply()
