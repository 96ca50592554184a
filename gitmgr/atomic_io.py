"""Atomic file primitives for the metadata cache.

Writes go to a temp file in the destination directory and are moved into
place with ``os.replace()``, so a reader in any process sees either the
old file or the new one, never a partial write.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

DIR_MODE = 0o700


def ensure_private_dir(path: Path) -> None:
    """Create *path* (and parents) readable only by the current user."""
    path.mkdir(parents=True, exist_ok=True, mode=DIR_MODE)


def atomic_write(path: Path, content: str) -> None:
    """Write content to a file atomically with 600 permissions.

    Uses write-to-temp + os.replace() to avoid corrupted files on crash.
    The temp file is created by ``mkstemp`` and therefore already 0600.
    """
    ensure_private_dir(path.parent)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except OSError:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def remove_file(path: Path) -> None:
    """Delete *path*; a file that is already gone is not an error."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
