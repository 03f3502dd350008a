"""End-to-end changelog run.

Steps run in a fixed order and never go back:

    resolve_last_tag -> [validate_version] -> gather_data -> select_diff_strategy
    -> build_request -> generate -> finalize

``validate_version`` only runs in release mode. Preview mode ends after the
generated text has been streamed to its sink; release mode merges the text into
the changelog file, commits it and creates an annotated tag.

Commit and tag are not one transaction. If tagging fails after the commit
went in, the run fails with ``tag_failed_after_commit`` and leaves the commit
in place; the error carries the command needed to finish by hand.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Protocol, TextIO

from chlog.core.result import Err, Ok, Result
from chlog.generation.base import GenerationError, TextGenerator
from chlog.generation.stream import collect_chunks, forward_chunks
from chlog.git.repository import GitError
from chlog.output.console import ConsoleProtocol, Style
from chlog.release.diff_strategy import count_changed_lines, select_strategy
from chlog.release.errors import ReleaseError
from chlog.release.fsm import StepOutcome, advance, finish, run_state_machine
from chlog.release.merger import update_changelog_file
from chlog.release.model import (
    UNRELEASED_HEADER,
    DiffStrategy,
    ReleaseOptions,
    ReleaseOutcome,
    ReleaseRange,
    ReleaseRequest,
    version_header,
)
from chlog.release.semver import validate_new_version

RESOLVE_LAST_TAG = "resolve_last_tag"
VALIDATE_VERSION = "validate_version"
GATHER_DATA = "gather_data"
SELECT_DIFF_STRATEGY = "select_diff_strategy"
BUILD_REQUEST = "build_request"
GENERATE = "generate"
FINALIZE = "finalize"


class VersionControl(Protocol):
    def last_tag(self) -> Result[str | None, GitError]: ...

    def commit_log(self, from_ref: str | None, to_ref: str) -> Result[list[str], GitError]: ...

    def diff_stat(self, from_ref: str | None, to_ref: str) -> Result[str, GitError]: ...

    def full_diff(self, from_ref: str | None, to_ref: str) -> Result[str, GitError]: ...

    def head_sha(self) -> Result[str, GitError]: ...

    def commit(self, message: str, *files: Path) -> Result[None, GitError]: ...

    def create_tag(self, name: str, message: str) -> Result[None, GitError]: ...


@dataclass(frozen=True, slots=True)
class ReleaseSession:
    """State threaded through the steps; each step returns an updated copy."""

    step: str
    options: ReleaseOptions
    range: ReleaseRange | None = None
    commits: tuple[str, ...] = ()
    diff_stat: str = ""
    strategy: DiffStrategy | None = None
    full_diff: str | None = None
    request: ReleaseRequest | None = None
    text: str = ""
    outcome: ReleaseOutcome | None = None


def _git_failed(action: str, error: GitError) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=f"{action}: {error.pretty()}")


def release_message(version: str) -> str:
    return f"Release {version}"


class ReleaseOrchestrator:
    """Drives one changelog run against a repository and a text generator."""

    def __init__(
        self,
        *,
        repo: VersionControl,
        generator: TextGenerator,
        console: ConsoleProtocol,
        stdout: TextIO | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._repo = repo
        self._generator = generator
        self._console = console
        self._stdout = stdout
        self._today = today

    def run(self, options: ReleaseOptions) -> Result[ReleaseOutcome, ReleaseError]:
        handlers = {
            RESOLVE_LAST_TAG: self._resolve_last_tag,
            VALIDATE_VERSION: self._validate_version,
            GATHER_DATA: self._gather_data,
            SELECT_DIFF_STRATEGY: self._select_diff_strategy,
            BUILD_REQUEST: self._build_request,
            GENERATE: self._generate,
            FINALIZE: self._finalize,
        }
        result = run_state_machine(
            initial_state=ReleaseSession(step=RESOLVE_LAST_TAG, options=options),
            get_step=lambda s: s.step,
            handlers=handlers,
        )
        if isinstance(result, Err):
            return result

        outcome = result.value.outcome
        if outcome is None:
            return Err(ReleaseError(kind="invalid_input", message="run finished without an outcome"))
        return Ok(outcome)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _resolve_last_tag(self, s: ReleaseSession) -> Result[StepOutcome[ReleaseSession], ReleaseError]:
        tag = self._repo.last_tag()
        if isinstance(tag, Err):
            return Err(_git_failed("getting last release tag", tag.error))

        if tag.value is None:
            self._console.info("no prior release tags found; will diff entire history")
        else:
            self._console.info(f"last release tag: {tag.value}")

        next_step = VALIDATE_VERSION if s.options.mode == "release" else GATHER_DATA
        return Ok(
            advance(
                replace(
                    s,
                    step=next_step,
                    range=ReleaseRange(from_ref=tag.value, to_ref=s.options.to_ref),
                )
            )
        )

    def _validate_version(self, s: ReleaseSession) -> Result[StepOutcome[ReleaseSession], ReleaseError]:
        assert s.range is not None and s.options.version is not None
        validated = validate_new_version(s.options.version, s.range.from_ref)
        if isinstance(validated, Err):
            return validated
        return Ok(advance(replace(s, step=GATHER_DATA)))

    def _gather_data(self, s: ReleaseSession) -> Result[StepOutcome[ReleaseSession], ReleaseError]:
        assert s.range is not None
        commits = self._repo.commit_log(s.range.from_ref, s.range.to_ref)
        if isinstance(commits, Err):
            return Err(_git_failed("getting commit log", commits.error))

        stat = self._repo.diff_stat(s.range.from_ref, s.range.to_ref)
        if isinstance(stat, Err):
            return Err(_git_failed("getting diff stat", stat.error))

        return Ok(
            advance(
                replace(
                    s,
                    step=SELECT_DIFF_STRATEGY,
                    commits=tuple(commits.value),
                    diff_stat=stat.value,
                )
            )
        )

    def _select_diff_strategy(
        self, s: ReleaseSession
    ) -> Result[StepOutcome[ReleaseSession], ReleaseError]:
        assert s.range is not None
        threshold = s.options.max_diff_lines
        total = count_changed_lines(s.diff_stat)
        strategy = select_strategy(total, threshold)

        full_diff: str | None = None
        if strategy is DiffStrategy.FULL_DIFF:
            fetched = self._repo.full_diff(s.range.from_ref, s.range.to_ref)
            if isinstance(fetched, Err):
                return Err(_git_failed("getting full diff", fetched.error))
            full_diff = fetched.value
            self._console.info(f"including full diff ({total} lines changed)")
        else:
            self._console.info(f"stat-only mode ({total} lines changed, threshold {threshold})")

        return Ok(
            advance(replace(s, step=BUILD_REQUEST, strategy=strategy, full_diff=full_diff))
        )

    def _build_request(self, s: ReleaseSession) -> Result[StepOutcome[ReleaseSession], ReleaseError]:
        assert s.range is not None
        version = s.options.version
        if version is None:
            header = UNRELEASED_HEADER
        else:
            header = version_header(version, self._today().isoformat())

        request = ReleaseRequest(
            from_label=s.range.from_label,
            to_label=s.range.to_ref,
            version_header=header,
            commits=s.commits,
            diff_stat=s.diff_stat,
            full_diff=s.full_diff,
        )
        return Ok(advance(replace(s, step=GENERATE, request=request)))

    def _generate(self, s: ReleaseSession) -> Result[StepOutcome[ReleaseSession], ReleaseError]:
        assert s.request is not None
        chunks = self._generator.stream(s.request)
        try:
            if s.options.mode == "release":
                text = collect_chunks(chunks)
            else:
                text = self._forward_preview(chunks, s.options.output)
        except GenerationError as e:
            return Err(ReleaseError(kind="generation_failed", message=str(e)))
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="io_failed",
                    message=f"writing output: {e}",
                    hint=str(s.options.output) if s.options.output else None,
                )
            )

        return Ok(advance(replace(s, step=FINALIZE, text=text)))

    def _finalize(self, s: ReleaseSession) -> Result[StepOutcome[ReleaseSession], ReleaseError]:
        version = s.options.version
        if version is None:
            outcome = ReleaseOutcome(mode="preview", version=None, text=s.text)
            return Ok(finish(replace(s, outcome=outcome)))

        path = s.options.changelog_path
        merged = update_changelog_file(path, s.text)
        if isinstance(merged, Err):
            return merged
        self._console.info(f"updated {path}")

        message = release_message(version)
        committed = self._repo.commit(message, path)
        if isinstance(committed, Err):
            return Err(_git_failed(f"committing {path}", committed.error))
        self._console.info(f"committed {path}")

        tagged = self._repo.create_tag(version, message)
        if isinstance(tagged, Err):
            return Err(self._partial_release_error(version, path, tagged.error))
        self._console.success(f"created tag {version}")
        self._console.print("next: git push && git push --tags", Style.DIM)

        outcome = ReleaseOutcome(
            mode="release",
            version=version,
            text=s.text,
            changelog_path=path,
            committed=True,
            tagged=True,
        )
        return Ok(finish(replace(s, outcome=outcome)))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _forward_preview(self, chunks: Iterable[str], output: Path | None) -> str:
        if output is None:
            return forward_chunks(chunks, self._stdout or sys.stdout)
        with output.open("w", encoding="utf-8") as handle:
            return forward_chunks(chunks, handle)

    def _partial_release_error(self, version: str, path: Path, error: GitError) -> ReleaseError:
        commit_ref = self._repo.head_sha().map(lambda sha: sha[:12]).unwrap_or("HEAD")
        return ReleaseError(
            kind="tag_failed_after_commit",
            message=(
                f"committed {path} as {commit_ref} but creating tag {version} failed: "
                f"{error.pretty()}; the commit was kept"
            ),
            hint=f'git tag -a {version} -m "{release_message(version)}" {commit_ref}',
        )
