"""Scoped temporary files for intermediate export artifacts."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)


def cleanup_temp_file(path: Path) -> None:
    """Remove a temporary file, logging any errors.

    Args:
        path: Path to temp file to remove.
    """
    if path.exists():
        try:
            path.unlink()
            logger.debug("Cleaned up temp file: %s", path)
        except OSError as e:
            logger.warning("Could not clean up temp file %s: %s", path, e)


class TempFileArena:
    """Creates temporary files and deletes all of them on exit.

    Only files created through ``create()`` are tracked, so inputs and the
    final output are never touched. Cleanup runs on every exit path and its
    own failures are logged, not raised, so they never mask the original
    error.

    Example:
        with TempFileArena() as arena:
            part = arena.create("seg-copy-0-", ".mp4")
            ...
        # part no longer exists here
    """

    def __init__(self, temp_dir: Path | None = None) -> None:
        """Initialize the arena.

        Args:
            temp_dir: Directory for temp files. None uses the system default.
        """
        self._temp_dir = temp_dir
        self._paths: list[Path] = []

    def create(self, prefix: str = "tlexport-", suffix: str = "") -> Path:
        """Create an empty temporary file and return its path."""
        fd, name = tempfile.mkstemp(
            prefix=prefix,
            suffix=suffix,
            dir=str(self._temp_dir) if self._temp_dir else None,
        )
        os.close(fd)
        path = Path(name)
        self._paths.append(path)
        return path

    def cleanup(self) -> None:
        """Delete every file this arena created."""
        while self._paths:
            cleanup_temp_file(self._paths.pop())

    def __enter__(self) -> TempFileArena:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()
