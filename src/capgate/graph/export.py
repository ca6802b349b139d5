"""Capability graph export to ``state/graph/latest.{json,md}``."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..file_ops import write_json, write_text
from ..project import Project
from ..registry.models import CapabilityProvider
from .resolver import CapabilityGraph

_MERMAID_ID = re.compile(r"[^A-Za-z0-9_]")


def _provider_dict(provider: Optional[CapabilityProvider]) -> Optional[dict[str, Any]]:
    if provider is None:
        return None
    return {
        "className": provider.class_name,
        "contract": provider.contract,
        "priority": provider.priority,
    }


def graph_payload(graph: CapabilityGraph, generated_at: Optional[str] = None) -> dict[str, Any]:
    apps: dict[str, Any] = {}
    for resolved in graph.apps:
        apps[resolved.app.app_id] = {
            "consumes": [
                {
                    "capabilityId": c.capability_id,
                    "required": c.consume.required,
                    "contract": c.contract,
                    "providers": [_provider_dict(p) for p in c.providers],
                    "winner": _provider_dict(c.winner),
                    "degraded": c.degraded,
                }
                for c in resolved.consumes
            ],
            "provides": list(resolved.provides),
        }
    return {
        "generatedAt": generated_at or datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "apps": apps,
    }


def _node_id(prefix: str, name: str) -> str:
    return f"{prefix}_{_MERMAID_ID.sub('_', name)}"


def render_mermaid(payload: dict[str, Any]) -> str:
    """``flowchart LR`` of app -> capability -> winning provider."""
    lines = ["flowchart LR"]
    declared: set[str] = set()

    def node(node_id: str, label: str, shape: str = "[]") -> str:
        if node_id not in declared:
            declared.add(node_id)
            lines.append(f'    {node_id}{shape[0]}"{label}"{shape[1]}')
        return node_id

    for app_id, app in payload["apps"].items():
        app_node = node(_node_id("app", app_id), app_id)
        for consume in app["consumes"]:
            capability = node(_node_id("cap", consume["capabilityId"]), consume["capabilityId"], "()")
            arrow = "-->" if consume["required"] else "-.->"
            lines.append(f"    {app_node} {arrow} {capability}")
            winner = consume["winner"]
            if winner is None:
                continue
            provider = node(_node_id("prov", winner["className"]), winner["className"].rsplit(".", 1)[-1])
            label = "noop" if consume["degraded"] else "winner"
            lines.append(f"    {capability} -- {label} --> {provider}")
    return "\n".join(lines)


def render_markdown(payload: dict[str, Any], mermaid: bool = False) -> str:
    lines = ["# capgate Graph", "", f"Generated: {payload['generatedAt']}", ""]

    if not payload["apps"]:
        lines.extend(["No apps discovered.", ""])
        return "\n".join(lines)

    if mermaid:
        lines.extend(["```mermaid", render_mermaid(payload), "```", ""])

    for app_id, app in payload["apps"].items():
        lines.extend([f"## {app_id}", "", "Consumes:"])
        if not app["consumes"]:
            lines.append("- none")
        for consume in app["consumes"]:
            required = "required" if consume["required"] else "optional"
            winner = consume["winner"]
            if winner is None:
                target = "MISSING"
            else:
                target = winner["className"] + (" (noop)" if consume["degraded"] else "")
            lines.append(f"- {consume['capabilityId']} ({required}) -> {target}")
        lines.extend(["", "Provides:"])
        if not app["provides"]:
            lines.append("- none")
        for provide in app["provides"]:
            lines.append(f"- {provide['capabilityId']} via {provide['provider'] or 'no provider'}")
        lines.append("")

    return "\n".join(lines)


def write_graph(project: Project, graph: CapabilityGraph, mermaid: bool = False) -> tuple[Path, Path]:
    payload = graph_payload(graph)
    if mermaid:
        payload["mermaid"] = render_mermaid(payload)

    directory = project.state_dir / "graph"
    json_path = directory / "latest.json"
    md_path = directory / "latest.md"
    write_json(json_path, payload)
    write_text(md_path, render_markdown(payload, mermaid=mermaid))
    return json_path, md_path
