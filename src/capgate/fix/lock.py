"""
Project-wide write lock.

One advisory, exclusive, non-blocking lock serializes every filesystem
mutation of a fix run across processes. It is never waited on: a second
writer fails immediately with :class:`LockHeldError`.

Usage:
    with WriteLock(project.lock_path):
        ...  # apply edits
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import IO, Optional

from ..exceptions import LockHeldError, ProjectStateError
from ..logging_config import get_logger

logger = get_logger(__name__)


class WriteLock:
    """OS-level lock on ``var/lock/capgate.lock``.

    Uses ``fcntl.flock`` on POSIX and ``msvcrt.locking`` on Windows.
    """

    def __init__(self, lock_path: Path):
        self.lock_path = Path(lock_path)
        self._handle: Optional[IO[str]] = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        if self._handle is not None:
            return

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(self.lock_path, "a+", encoding="utf-8")
        except OSError as e:
            raise ProjectStateError(f"Cannot open lock file {self.lock_path}: {e}")

        try:
            if sys.platform == "win32":
                self._lock_windows(handle)
            else:
                self._lock_unix(handle)
        except OSError:
            handle.close()
            raise LockHeldError(self.lock_path)

        handle.seek(0)
        handle.truncate()
        handle.write(str(os.getpid()))
        handle.flush()
        self._handle = handle
        logger.debug(f"Acquired write lock {self.lock_path}")

    def _lock_unix(self, handle: IO[str]) -> None:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

    def _lock_windows(self, handle: IO[str]) -> None:
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)

    def release(self) -> None:
        if self._handle is None:
            return

        try:
            if sys.platform == "win32":
                import msvcrt

                self._handle.seek(0)
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                import fcntl

                fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None
            logger.debug(f"Released write lock {self.lock_path}")

    def __enter__(self) -> "WriteLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
