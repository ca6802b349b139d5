"""Stable identity keys for findings.

A finding's id stays the same across runs as long as the rule, the file,
the symbol and the ``primary`` fingerprint stay the same. Line numbers are
deliberately left out so that unrelated edits above a violation do not
change its id, and nothing process-specific (time, pid) goes in.

Id format: ``F-`` followed by 8 characters of Crockford-style base-32
(no I, L, O, U) encoding the first 40 bits of a SHA-1 digest.
"""

import hashlib
from pathlib import Path
from typing import Optional

from .models import Finding, FindingLocation

ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
ID_PATTERN = r"^F-[0-9A-HJKMNP-TV-Z]{8}$"


class FindingIdGenerator:
    """Compute ``F-XXXXXXXX`` ids relative to one project root."""

    def __init__(self, project_root: Optional[Path] = None):
        self._root = str(project_root).replace("\\", "/").rstrip("/") if project_root else None

    def generate(self, finding: Finding) -> str:
        location = finding.location or FindingLocation()
        parts = [
            finding.rule_key,
            self.normalize_path(location.file) or "",
            location.symbol or "",
            finding.primary,
        ]
        digest = hashlib.sha1("|".join(parts).encode("utf-8")).digest()
        return "F-" + encode_base32(digest[:5])

    def normalize_path(self, path: Optional[str]) -> Optional[str]:
        """Relative, forward-slash form of *path*."""
        if path is None or path == "":
            return path
        text = str(path).replace("\\", "/")
        if self._root and text.startswith(self._root + "/"):
            text = text[len(self._root) + 1 :]
        return text.lstrip("/")

    def normalize_location(self, location: Optional[FindingLocation]) -> dict:
        location = location or FindingLocation()
        return {
            "file": self.normalize_path(location.file),
            "line": location.line,
            "symbol": location.symbol,
        }


def encode_base32(raw: bytes) -> str:
    """Encode 5 bytes (40 bits) as 8 base-32 characters, most significant first."""
    value = int.from_bytes(raw, "big")
    return "".join(ALPHABET[(value >> (35 - 5 * i)) & 0x1F] for i in range(8))
