from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

RunMode = Literal["preview", "release"]

BEGINNING_OF_HISTORY = "the beginning of the repository"
UNRELEASED_HEADER = "## [Unreleased]"


class DiffStrategy(Enum):
    FULL_DIFF = "full_diff"
    STAT_ONLY = "stat_only"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ReleaseRange:
    """Revisions covered by a run. ``from_ref=None`` starts at the first commit."""

    from_ref: str | None
    to_ref: str = "HEAD"

    @property
    def from_label(self) -> str:
        return BEGINNING_OF_HISTORY if self.from_ref is None else self.from_ref


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """Everything the text generator is told about one release."""

    from_label: str
    to_label: str
    version_header: str
    commits: tuple[str, ...]
    diff_stat: str
    # None means stat-only mode.
    full_diff: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    repo: Path
    version: str | None
    max_diff_lines: int
    changelog_path: Path
    # Preview destination; None streams to stdout.
    output: Path | None = None
    to_ref: str = "HEAD"

    @property
    def mode(self) -> RunMode:
        return "preview" if self.version is None else "release"


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    mode: RunMode
    version: str | None
    text: str
    changelog_path: Path | None = None
    committed: bool = False
    tagged: bool = False


def version_header(version: str, date_iso: str) -> str:
    return f"## [{version}] - {date_iso}"
