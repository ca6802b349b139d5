"""Idempotent ``provides``/``consumes`` edits of app manifests."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ...exceptions import FixBlocked, ManifestError
from ...registry.manifest import read_manifest_data, rewrite_manifest_source


def upsert_provides(path: Path, capability: str, contract: str) -> Optional[str]:
    """New manifest source declaring *capability*, or None when already declared.

    Raises:
        FixBlocked: The manifest is invalid or provides *capability* with
            another contract
    """
    try:
        data, assignment, source = read_manifest_data(path)
    except ManifestError:
        raise FixBlocked("Provider manifest invalid.")

    provides = data.get("provides", [])
    if not isinstance(provides, list):
        raise FixBlocked("Provider manifest invalid.")

    for entry in provides:
        if not isinstance(entry, dict):
            raise FixBlocked("Provider manifest invalid.")
        if entry.get("capabilityId") != capability:
            continue
        if entry.get("contract") != contract:
            raise FixBlocked("Provider manifest provides incompatible contract.")
        return None

    data["provides"] = [*provides, {"capabilityId": capability, "contract": contract}]
    return rewrite_manifest_source(source, assignment, data)


def upsert_consumes(path: Path, capability: str, contract: str) -> Optional[str]:
    """New manifest source consuming *capability* with *contract*, or None when unchanged.

    A bare string entry for the capability is expanded into the dict form so
    the contract can be recorded.

    Raises:
        FixBlocked: The manifest is invalid or consumes *capability* with
            another contract
    """
    try:
        data, assignment, source = read_manifest_data(path)
    except ManifestError:
        raise FixBlocked("Consumer manifest invalid.")

    consumes = data.get("consumes", [])
    if not isinstance(consumes, list):
        raise FixBlocked("Consumer manifest invalid.")

    updated = list(consumes)
    for index, entry in enumerate(consumes):
        if entry == capability:
            updated[index] = {"capabilityId": capability, "required": True, "contract": contract}
            break
        if not isinstance(entry, dict):
            if not isinstance(entry, str):
                raise FixBlocked("Consumer manifest invalid.")
            continue
        if entry.get("capabilityId") != capability:
            continue
        existing = entry.get("contract")
        if existing is not None and existing != contract:
            raise FixBlocked("Consumer manifest consumes incompatible contract.")
        if existing == contract:
            return None
        updated[index] = {**entry, "contract": contract}
        break
    else:
        updated.append({"capabilityId": capability, "required": True, "contract": contract})

    data["consumes"] = updated
    return rewrite_manifest_source(source, assignment, data)
