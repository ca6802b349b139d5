"""Filesystem layout of an analyzed project.

Every path and dotted module name that capgate derives from the project
goes through :class:`Project`, so the rest of the code never hard-codes
``src/app/apps``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .config import CapgateConfig

# Directories never treated as source
_SKIP_DIRS = frozenset({"__pycache__", ".git", ".venv", "venv", "node_modules"})


@dataclass(frozen=True)
class Project:
    root: Path
    config: CapgateConfig

    @classmethod
    def at(cls, root: Path, config: Optional[CapgateConfig] = None) -> "Project":
        return cls(root=root.resolve(), config=config or CapgateConfig())

    # -- directories ---------------------------------------------------------

    @property
    def source_dir(self) -> Path:
        return self.root / self.config.source_dir

    @property
    def package_dir(self) -> Path:
        return self.source_dir / self.config.root_package

    @property
    def apps_dir(self) -> Path:
        return self.package_dir / self.config.apps_package

    @property
    def components_dir(self) -> Path:
        return self.package_dir / self.config.components_package

    @property
    def state_dir(self) -> Path:
        return self.root / self.config.state_dir

    @property
    def lock_path(self) -> Path:
        return self.root / self.config.lock_file

    @property
    def public_dir(self) -> Path:
        return self.root / self.config.public_dir

    # -- paths and module names ---------------------------------------------

    def relative(self, path: Path | str) -> str:
        """Project-relative, forward-slash form of *path*.

        Paths outside the project are returned in forward-slash form
        unchanged.
        """
        text = str(path).replace("\\", "/")
        root = str(self.root).replace("\\", "/").rstrip("/")
        if text.startswith(root + "/"):
            text = text[len(root) + 1 :]
        return text.lstrip("/")

    def absolute(self, path: Path | str) -> Path:
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.root / self.relative(candidate)

    def module_name(self, path: Path) -> Optional[str]:
        """Dotted module name of a file below the source directory."""
        try:
            rel = path.resolve().relative_to(self.source_dir.resolve())
        except ValueError:
            return None
        parts = list(rel.with_suffix("").parts)
        if parts and parts[-1] == "__init__":
            parts.pop()
        return ".".join(parts) if parts else None

    def module_path(self, module: str) -> Optional[Path]:
        """File implementing *module*, or None when it does not exist."""
        base = self.source_dir.joinpath(*module.split("."))
        candidate = base.with_suffix(".py")
        if candidate.is_file():
            return candidate
        package = base / "__init__.py"
        if package.is_file():
            return package
        return None

    def module_exists(self, module: str) -> bool:
        if self.module_path(module) is not None:
            return True
        # Namespace packages have no __init__.py
        return self.source_dir.joinpath(*module.split(".")).is_dir()

    def file_for_module(self, module: str) -> Path:
        """Target file for a module that is about to be generated."""
        return self.source_dir.joinpath(*module.split(".")).with_suffix(".py")

    def app_folder_of(self, path: Path) -> Optional[str]:
        """App folder owning *path*, or None when it is not app-scoped."""
        try:
            rel = path.resolve().relative_to(self.apps_dir.resolve())
        except ValueError:
            return None
        return rel.parts[0] if len(rel.parts) > 1 else None

    def is_global(self, path: Path) -> bool:
        try:
            path.resolve().relative_to(self.components_dir.resolve())
        except ValueError:
            return False
        return True

    def app_folder_of_symbol(self, fqn: str) -> Optional[str]:
        """App folder segment of a dotted name below the apps namespace."""
        prefix = self.config.apps_namespace + "."
        if not fqn.startswith(prefix):
            return None
        folder = fqn[len(prefix) :].split(".", 1)[0]
        return folder or None

    def python_files(self, directory: Path) -> Iterator[Path]:
        """Python files below *directory* in a stable order."""
        if not directory.is_dir():
            return
        for path in sorted(directory.rglob("*.py")):
            if any(part in _SKIP_DIRS or part.startswith(".") for part in path.relative_to(directory).parts[:-1]):
                continue
            yield path
