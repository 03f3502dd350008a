"""The one place ``subprocess`` is called.

git output is returned as text on success. On failure the caller gets a
ProcessError holding whatever the child wrote, so git's own diagnostic can be
shown to the user.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from chlog.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]

# Return code used when the child never produced one.
NO_EXIT_CODE = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not run, timed out, or exited non-zero."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        head = " ".join(self.command[:3])
        tail = " ..." if len(self.command) > 3 else ""
        return f"{head}{tail} failed (exit {self.returncode})"


def _not_started(cmd: Sequence[str], reason: str, stdout: str = "") -> Err[ProcessError]:
    return Err(ProcessError(command=tuple(cmd), returncode=NO_EXIT_CODE, stdout=stdout, stderr=reason))


def run(
    cmd: Sequence[str],
    cwd: Path,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` in ``cwd`` and return its stdout.

    ``timeout`` is in seconds; None waits forever.
    """
    try:
        proc = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return _not_started(cmd, f"Command timed out after {timeout}s", partial)
    except OSError as e:
        return _not_started(cmd, str(e))

    if proc.returncode == 0:
        return Ok(proc.stdout)
    return Err(
        ProcessError(
            command=tuple(cmd),
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )
    )
