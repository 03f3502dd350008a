"""Reading and replacing text files."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

__all__ = ["atomic_write_text", "read_text_if_exists"]


def read_text_if_exists(path: Path, *, encoding: str = "utf-8") -> str | None:
    """Return the file's text, or None if it is absent. Other OSErrors propagate."""
    try:
        return path.read_text(encoding=encoding)
    except FileNotFoundError:
        return None


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write ``content`` to a sibling temp file, then rename it over ``path``.

    A crash or a failed rename leaves the previous file as it was and no temp
    file behind.
    """
    directory = path.parent
    directory.mkdir(parents=True, exist_ok=True)

    fd, name = tempfile.mkstemp(dir=directory, prefix=f".{path.name}.", suffix=".tmp")
    staged = Path(name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(staged, path)
    finally:
        staged.unlink(missing_ok=True)
