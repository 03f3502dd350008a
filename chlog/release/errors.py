"""Error payload for a changelog run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "invalid_input",
    "invalid_version",
    "version_not_greater",
    "unparsable_last_tag",
    "config_invalid",
    "git_failed",
    "generation_failed",
    "io_failed",
    "tag_failed_after_commit",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical error of the release pipeline.

    ``step`` is filled in by the step runner with the name of the step that
    failed; errors raised before the pipeline starts leave it empty.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    step: str | None = None

    def pretty(self) -> str:
        text = self.message if self.step is None else f"{self.step}: {self.message}"
        if self.hint:
            return f"{text} (hint: {self.hint})"
        return text
