"""
File writes for capgate.

Every write goes through here so that unchanged files are left untouched
(modification times stay stable for build tools) and failures surface as
project-state errors instead of raw OSErrors.
"""

import json
from pathlib import Path
from typing import Any

from .exceptions import ProjectStateError
from .logging_config import get_logger

logger = get_logger(__name__)


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProjectStateError(f"Cannot read {path}: {e}")


def write_text(path: Path, content: str) -> bool:
    """
    Write *content* to *path* unless it already holds exactly that.

    Returns:
        True when the file was created or changed
    """
    try:
        if path.is_file() and path.read_text(encoding="utf-8") == content:
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ProjectStateError(f"Cannot write {path}: {e}")
    logger.debug(f"Wrote {path}")
    return True


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json(path: Path, data: Any) -> bool:
    return write_text(path, dump_json(data))
