"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chlog.core.errors import ErrorCode
from chlog.output.console import Style
from chlog.release.errors import ReleaseError

if TYPE_CHECKING:
    from chlog.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print a fatal run error, naming the step that failed."""
    match error:
        case ReleaseError(kind="tag_failed_after_commit", message=message, hint=hint):
            console.error(message)
            console.warning("the release commit exists but is not tagged")
            if hint:
                console.print(f"to finish: {hint}", Style.DIM)
        case ReleaseError(message=message, hint=hint, step=step):
            console.error(message if step is None else f"{step}: {message}")
            if hint:
                console.print(f"hint: {hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    match error.kind:
        case "git_failed":
            return int(ErrorCode.GIT_ERROR)
        case "generation_failed":
            return int(ErrorCode.NETWORK_ERROR)
        case "io_failed":
            return int(ErrorCode.IO_ERROR)
        case "tag_failed_after_commit":
            return int(ErrorCode.PARTIAL_RELEASE)
        case _:
            return int(ErrorCode.USER_ERROR)
