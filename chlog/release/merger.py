"""Prepend a generated entry into a Keep a Changelog document.

The document is treated as an optional header followed by opaque version
sections, each starting at a ``## [`` line, newest first. New entries go in
front of the first section.
"""

from __future__ import annotations

from pathlib import Path

from chlog.core.result import Err, Ok, Result
from chlog.platform.files import atomic_write_text, read_text_if_exists
from chlog.release.errors import ReleaseError

CHANGELOG_HEADER = (
    "# Changelog\n"
    "\n"
    "All notable changes to this project will be documented in this file.\n"
    "\n"
    "The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.1.0/),\n"
    "and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html).\n"
)

_SECTION_MARKER = "\n## ["


def merge_entry(existing: str | None, entry: str) -> str:
    """Return ``existing`` with ``entry`` inserted as the newest section.

    Same entry twice gives two sections; duplicates are prevented upstream by
    refusing versions that are not greater than the last tag.
    """
    entry = entry.rstrip("\n")

    if not existing:
        return CHANGELOG_HEADER + "\n" + entry + "\n"

    idx = existing.find(_SECTION_MARKER)
    if idx == -1:
        return existing.rstrip("\n") + "\n\n" + entry + "\n"

    before = existing[:idx].rstrip("\n")
    after = existing[idx + 1 :]
    return before + "\n\n" + entry + "\n\n" + after.rstrip("\n") + "\n"


def update_changelog_file(path: Path, entry: str) -> Result[str, ReleaseError]:
    """Merge ``entry`` into the changelog at ``path`` and write it back atomically.

    A missing file is created with the standard header.
    """
    try:
        existing = read_text_if_exists(path)
    except (OSError, UnicodeDecodeError) as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message=f"failed to read {path}: {e}",
                hint=str(path),
            )
        )

    merged = merge_entry(existing, entry)

    try:
        atomic_write_text(path, merged)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message=f"failed to write {path}: {e}",
                hint=str(path),
            )
        )

    return Ok(merged)
