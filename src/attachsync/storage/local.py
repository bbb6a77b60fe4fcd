"""Local filesystem access for synced files.

This module provides:
- LocalFileStore: existence checks, directory creation, moves and
  idempotent deletes on the device filesystem
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalFileStore:
    """Filesystem operations addressed by local path.

    Every method takes the already-resolved local path; mapping identities
    to paths is the job of ``PathResolver``.
    """

    def exists(self, path: Path) -> bool:
        """Check whether a regular file exists at path."""
        return path.is_file()

    def ensure_dir(self, path: Path) -> None:
        """Create a directory (and parents). Safe to call repeatedly."""
        path.mkdir(parents=True, exist_ok=True)

    def move(self, src: Path, dst: Path) -> None:
        """Move src to dst, replacing dst.

        Uses an atomic rename when both paths are on the same filesystem
        and falls back to copy + delete otherwise.
        """
        try:
            os.replace(src, dst)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise
            logger.debug("Cross-device move %s -> %s, copying", src, dst)
            shutil.move(str(src), str(dst))

    def delete(self, path: Path) -> bool:
        """Delete a file, treating an absent file as success.

        Returns:
            True if a file was removed, False if there was nothing to remove.

        Raises:
            OSError: If removal failed for any reason other than absence.
        """
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True
