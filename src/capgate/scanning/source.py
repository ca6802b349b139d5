"""Parsed source files shared by every scanner in one run.

Each file is read and parsed once. Files that fail to parse are remembered
with their error so the verifier can report them, but they never abort a
scan.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from ..logging_config import get_logger
from ..project import Project
from .names import ImportTable

logger = get_logger(__name__)


@dataclass
class SourceFile:
    path: Path
    rel: str  # project-relative, forward slashes
    module: Optional[str]
    source: str
    tree: ast.Module
    _imports: Optional[ImportTable] = field(default=None, repr=False)

    @property
    def imports(self) -> ImportTable:
        if self._imports is None:
            self._imports = ImportTable.from_tree(self.tree, self.module, self.is_package)
        return self._imports

    @property
    def is_package(self) -> bool:
        return self.path.name == "__init__.py"


class SourceIndex:
    """Lazy cache of parsed files below the project's root package."""

    def __init__(self, project: Project):
        self.project = project
        self._files: dict[Path, Optional[SourceFile]] = {}
        self.unparsable: dict[str, str] = {}

    def get(self, path: Path) -> Optional[SourceFile]:
        path = path.resolve()
        if path not in self._files:
            self._files[path] = self._parse(path)
        return self._files[path]

    def files(self, directory: Optional[Path] = None) -> Iterator[SourceFile]:
        """Parsed files below *directory* (default: the root package)."""
        for path in self.project.python_files(directory or self.project.package_dir):
            parsed = self.get(path)
            if parsed is not None:
                yield parsed

    def boundary_files(self) -> Iterator[SourceFile]:
        """Parsed files of every app and global component."""
        yield from self.files(self.project.apps_dir)
        yield from self.files(self.project.components_dir)

    def for_module(self, module: str) -> Optional[SourceFile]:
        path = self.project.module_path(module)
        return self.get(path) if path is not None else None

    def _parse(self, path: Path) -> Optional[SourceFile]:
        rel = self.project.relative(path)
        try:
            source = path.read_text(encoding="utf-8")
            tree = ast.parse(source, filename=str(path))
        except (SyntaxError, ValueError, UnicodeDecodeError) as e:
            message = getattr(e, "msg", None) or str(e)
            logger.warning(f"Skipping unparsable file {rel}: {message}")
            self.unparsable[rel] = message
            return None
        except OSError as e:
            logger.warning(f"Skipping unreadable file {rel}: {e}")
            self.unparsable[rel] = str(e)
            return None

        return SourceFile(
            path=path,
            rel=rel,
            module=self.project.module_name(path),
            source=source,
            tree=tree,
        )
