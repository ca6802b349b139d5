"""Clickable file locations for Markdown reports."""

from pathlib import Path
from typing import Optional
from urllib.parse import quote


class LinkBuilder:
    """Format ``path:line`` and optionally wrap it in a Markdown link.

    Schemes:
        none: plain text
        file: ``file://`` URL of the absolute path
        vscode: ``vscode://file/<path>:<line>`` which opens the editor
    """

    def __init__(self, project_root: Path, enabled: bool = False, scheme: str = "none"):
        self.project_root = project_root
        self.enabled = enabled
        self.scheme = scheme

    def format(self, path: Optional[str], line: Optional[int] = None) -> str:
        if not path:
            return ""

        location = path
        if line:
            location += f":{line}"

        if not self.enabled or self.scheme == "none":
            return location

        absolute = (self.project_root / path).resolve()
        if not absolute.exists():
            return location

        if self.scheme == "file":
            link = absolute.as_uri()
        elif self.scheme == "vscode":
            link = "vscode://file" + quote(absolute.as_posix())
            if line:
                link += f":{line}"
        else:
            return location

        return f"[{location}]({link})"
