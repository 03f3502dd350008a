"""Git repository abstraction.

Every query is scoped to a ``from..to`` revision range. ``from_ref=None``
means "since the beginning of history": the commit log then walks everything
reachable from ``to_ref`` and diffs are taken against the empty tree.

All operations return Result types; nothing here raises on git failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from chlog.core.result import Err, Ok, Result
from chlog.platform.process import ProcessError
from chlog.platform.process import run as run_process

# Well-known id of git's empty tree object.
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_GIT_TIMEOUT_SECONDS = 60.0

__all__ = [
    "EMPTY_TREE_SHA",
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed (e.g. "describe --tags --abbrev=0")
        message: git's stderr, or a fallback description
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1

    def pretty(self) -> str:
        return f"git {self.command}: {self.message}"


class Repository:
    """A git working copy.

    Attributes:
        path: Path to the repository (any directory inside the work tree works)
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def last_tag(self) -> Result[str | None, GitError]:
        """Most recent tag reachable from HEAD.

        Returns:
            Ok(None) when the repository has no tags at all
            Ok(tag) otherwise
            Err(GitError) on failure
        """
        listed = self._git(["tag", "-l"])
        if isinstance(listed, Err):
            return listed
        if not listed.value.strip():
            return Ok(None)

        described = self._git(["describe", "--tags", "--abbrev=0"])
        if isinstance(described, Err):
            return described
        return Ok(described.value.strip())

    def commit_log(self, from_ref: str | None, to_ref: str) -> Result[list[str], GitError]:
        """One-line commit messages, newest first, merges excluded.

        Each line is ``<short sha> <subject>`` as printed by ``git log --oneline``.
        """
        revision = to_ref if from_ref is None else f"{from_ref}..{to_ref}"
        result = self._git(["log", "--oneline", "--no-merges", revision])
        if isinstance(result, Err):
            return result
        if not result.value:
            return Ok([])
        return Ok(result.value.split("\n"))

    def diff_stat(self, from_ref: str | None, to_ref: str) -> Result[str, GitError]:
        """``git diff --stat`` summary for the range."""
        return self._git(["diff", "--stat", _diff_range(from_ref, to_ref)])

    def full_diff(self, from_ref: str | None, to_ref: str) -> Result[str, GitError]:
        """Unified diff for the range, without color codes."""
        return self._git(["diff", "--no-color", _diff_range(from_ref, to_ref)])

    def head_sha(self) -> Result[str, GitError]:
        """Full sha of HEAD."""
        result = self._git(["rev-parse", "HEAD"])
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def commit(self, message: str, *files: Path) -> Result[None, GitError]:
        """Stage files and commit them with message."""
        staged = self._git(["add", "--", *(str(f) for f in files)])
        if isinstance(staged, Err):
            return staged

        committed = self._git(["commit", "-m", message])
        if isinstance(committed, Err):
            return committed
        return Ok(None)

    def create_tag(self, name: str, message: str) -> Result[None, GitError]:
        """Create an annotated tag at HEAD."""
        result = self._git(["tag", "-a", name, "-m", message])
        if isinstance(result, Err):
            return result
        return Ok(None)

    def _git(self, args: list[str]) -> Result[str, GitError]:
        """Run a git command; trailing newlines are stripped from stdout."""
        result = self._run(args)
        match result:
            case Err(e):
                return Err(_git_error(args, e))
            case Ok(stdout):
                return Ok(stdout.rstrip("\n"))

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            timeout=_GIT_TIMEOUT_SECONDS,
        )


def _diff_range(from_ref: str | None, to_ref: str) -> str:
    base = EMPTY_TREE_SHA if from_ref is None else from_ref
    return f"{base}..{to_ref}"


def _git_error(args: list[str], error: ProcessError) -> GitError:
    return GitError(
        command=" ".join(args),
        message=error.stderr.strip() or error.stdout.strip() or f"git {args[0]} failed",
        returncode=error.returncode,
    )
