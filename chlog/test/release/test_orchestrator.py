from __future__ import annotations

import io
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from chlog.core.result import Err, Ok, Result
from chlog.generation.base import GenerationError
from chlog.git.repository import GitError
from chlog.output.console import MockConsole
from chlog.release.merger import CHANGELOG_HEADER
from chlog.release.model import BEGINNING_OF_HISTORY, ReleaseOptions, ReleaseRequest
from chlog.release.orchestrator import ReleaseOrchestrator

TODAY = date(2026, 10, 19)


def _stat(insertions: int, deletions: int) -> str:
    return (
        " src/app.py | 10 +++++-----\n"
        f" 1 file changed, {insertions} insertions(+), {deletions} deletions(-)"
    )


@dataclass
class FakeRepo:
    tag: str | None = None
    commits: list[str] = field(default_factory=lambda: ["abc Add login", "def Fix typo"])
    stat: str = field(default_factory=lambda: _stat(3, 2))
    diff: str = "diff --git a/src/app.py b/src/app.py\n+login()"
    failures: dict[str, GitError] = field(default_factory=lambda: {})
    calls: list[str] = field(default_factory=lambda: [])
    committed: list[tuple[str, tuple[Path, ...]]] = field(default_factory=lambda: [])
    tags: list[tuple[str, str]] = field(default_factory=lambda: [])

    def _fail(self, name: str) -> Err[GitError] | None:
        self.calls.append(name)
        error = self.failures.get(name)
        return Err(error) if error is not None else None

    def last_tag(self) -> Result[str | None, GitError]:
        return self._fail("last_tag") or Ok(self.tag)

    def commit_log(self, from_ref: str | None, to_ref: str) -> Result[list[str], GitError]:
        return self._fail("commit_log") or Ok(list(self.commits))

    def diff_stat(self, from_ref: str | None, to_ref: str) -> Result[str, GitError]:
        return self._fail("diff_stat") or Ok(self.stat)

    def full_diff(self, from_ref: str | None, to_ref: str) -> Result[str, GitError]:
        return self._fail("full_diff") or Ok(self.diff)

    def head_sha(self) -> Result[str, GitError]:
        return self._fail("head_sha") or Ok("0123456789abcdef0123456789abcdef01234567")

    def commit(self, message: str, *files: Path) -> Result[None, GitError]:
        failed = self._fail("commit")
        if failed is not None:
            return failed
        self.committed.append((message, files))
        return Ok(None)

    def create_tag(self, name: str, message: str) -> Result[None, GitError]:
        failed = self._fail("create_tag")
        if failed is not None:
            return failed
        self.tags.append((name, message))
        return Ok(None)


class FakeGenerator:
    """Echoes the requested header followed by a fixed body."""

    def __init__(self, *, fail_after: int | None = None) -> None:
        self.requests: list[ReleaseRequest] = []
        self.fail_after = fail_after

    def stream(self, request: ReleaseRequest) -> Iterator[str]:
        self.requests.append(request)
        return self._chunks(request)

    def _chunks(self, request: ReleaseRequest) -> Iterator[str]:
        chunks = [request.version_header, "\n\n### Added\n\n", "- Added login\n"]
        for i, chunk in enumerate(chunks):
            if self.fail_after is not None and i == self.fail_after:
                raise GenerationError("streaming error: connection reset")
            yield chunk


def _orchestrator(
    repo: FakeRepo,
    generator: FakeGenerator,
    *,
    stdout: io.StringIO | None = None,
) -> tuple[ReleaseOrchestrator, MockConsole]:
    console = MockConsole()
    orch = ReleaseOrchestrator(
        repo=repo,
        generator=generator,
        console=console,
        stdout=stdout if stdout is not None else io.StringIO(),
        today=lambda: TODAY,
    )
    return orch, console


def _options(tmp_path: Path, *, version: str | None, max_diff: int = 2000) -> ReleaseOptions:
    return ReleaseOptions(
        repo=tmp_path,
        version=version,
        max_diff_lines=max_diff,
        changelog_path=tmp_path / "CHANGELOG.md",
    )


# =============================================================================
# Release mode
# =============================================================================


def test_first_release_writes_changelog_commits_and_tags(tmp_path: Path) -> None:
    repo = FakeRepo(tag=None)
    generator = FakeGenerator()
    orch, console = _orchestrator(repo, generator)

    result = orch.run(_options(tmp_path, version="1.0.0"))

    assert isinstance(result, Ok)
    changelog = (tmp_path / "CHANGELOG.md").read_text(encoding="utf-8")
    assert changelog.startswith(CHANGELOG_HEADER)
    assert changelog.count("## [") == 1
    assert "## [1.0.0] - 2026-10-19" in changelog
    assert repo.committed == [("Release 1.0.0", (tmp_path / "CHANGELOG.md",))]
    assert repo.tags == [("1.0.0", "Release 1.0.0")]
    assert result.value.committed and result.value.tagged
    assert console.find("no prior release tags found")


def test_release_request_describes_range_and_commits(tmp_path: Path) -> None:
    generator = FakeGenerator()
    orch, _ = _orchestrator(FakeRepo(tag=None), generator)

    orch.run(_options(tmp_path, version="1.0.0"))

    (request,) = generator.requests
    assert request.from_label == BEGINNING_OF_HISTORY
    assert request.to_label == "HEAD"
    assert request.version_header == "## [1.0.0] - 2026-10-19"
    assert request.commits == ("abc Add login", "def Fix typo")


def test_release_prepends_to_existing_changelog(tmp_path: Path) -> None:
    existing = CHANGELOG_HEADER + "\n## [1.0.0] - 2026-01-01\n\n### Fixed\n\n- Fixed typo\n"
    (tmp_path / "CHANGELOG.md").write_text(existing, encoding="utf-8")
    orch, console = _orchestrator(FakeRepo(tag="1.0.0"), FakeGenerator())

    result = orch.run(_options(tmp_path, version="v1.1.0"))

    assert isinstance(result, Ok)
    changelog = (tmp_path / "CHANGELOG.md").read_text(encoding="utf-8")
    assert changelog.index("## [v1.1.0] - 2026-10-19") < changelog.index("## [1.0.0]")
    assert console.find("last release tag: 1.0.0")


def test_release_rejects_lower_version_before_any_side_effect(tmp_path: Path) -> None:
    repo = FakeRepo(tag="1.2.0")
    generator = FakeGenerator()
    orch, _ = _orchestrator(repo, generator)

    result = orch.run(_options(tmp_path, version="1.1.0"))

    assert isinstance(result, Err)
    assert result.error.kind == "version_not_greater"
    assert result.error.step == "validate_version"
    assert "must be greater" in result.error.message
    assert generator.requests == []
    assert repo.calls == ["last_tag"]
    assert not (tmp_path / "CHANGELOG.md").exists()
    assert repo.tags == []


def test_release_rejects_rerun_of_released_version(tmp_path: Path) -> None:
    orch, _ = _orchestrator(FakeRepo(tag="v2.0.0"), FakeGenerator())

    result = orch.run(_options(tmp_path, version="2.0.0"))

    assert isinstance(result, Err)
    assert result.error.kind == "version_not_greater"


def test_release_with_non_semver_last_tag_fails(tmp_path: Path) -> None:
    generator = FakeGenerator()
    orch, _ = _orchestrator(FakeRepo(tag="nightly"), generator)

    result = orch.run(_options(tmp_path, version="1.0.0"))

    assert isinstance(result, Err)
    assert result.error.kind == "unparsable_last_tag"
    assert generator.requests == []


def test_release_with_malformed_version_fails(tmp_path: Path) -> None:
    orch, _ = _orchestrator(FakeRepo(), FakeGenerator())

    result = orch.run(_options(tmp_path, version="1.0"))

    assert isinstance(result, Err)
    assert result.error.kind == "invalid_version"


def test_tag_failure_after_commit_keeps_commit_and_reports_recovery(tmp_path: Path) -> None:
    repo = FakeRepo(
        tag="1.0.0",
        failures={"create_tag": GitError(command="tag -a 1.1.0", message="tag exists")},
    )
    orch, _ = _orchestrator(repo, FakeGenerator())

    result = orch.run(_options(tmp_path, version="1.1.0"))

    assert isinstance(result, Err)
    assert result.error.kind == "tag_failed_after_commit"
    assert result.error.step == "finalize"
    assert "tag exists" in result.error.message
    assert result.error.hint == 'git tag -a 1.1.0 -m "Release 1.1.0" 0123456789ab'
    assert repo.committed == [("Release 1.1.0", (tmp_path / "CHANGELOG.md",))]
    assert "commit" in repo.calls
    assert (tmp_path / "CHANGELOG.md").exists()


def test_commit_failure_skips_tagging(tmp_path: Path) -> None:
    repo = FakeRepo(failures={"commit": GitError(command="commit -m x", message="nothing to commit")})
    orch, _ = _orchestrator(repo, FakeGenerator())

    result = orch.run(_options(tmp_path, version="1.0.0"))

    assert isinstance(result, Err)
    assert result.error.kind == "git_failed"
    assert "create_tag" not in repo.calls


def test_generation_failure_writes_nothing(tmp_path: Path) -> None:
    repo = FakeRepo()
    orch, _ = _orchestrator(repo, FakeGenerator(fail_after=1))

    result = orch.run(_options(tmp_path, version="1.0.0"))

    assert isinstance(result, Err)
    assert result.error.kind == "generation_failed"
    assert result.error.step == "generate"
    assert not (tmp_path / "CHANGELOG.md").exists()
    assert repo.committed == []


# =============================================================================
# Data gathering and diff strategy
# =============================================================================


def test_total_at_threshold_fetches_full_diff(tmp_path: Path) -> None:
    repo = FakeRepo(stat=_stat(1000, 1000))
    generator = FakeGenerator()
    orch, console = _orchestrator(repo, generator)

    orch.run(_options(tmp_path, version=None, max_diff=2000))

    assert "full_diff" in repo.calls
    assert generator.requests[0].full_diff == repo.diff
    assert console.find("including full diff (2000 lines changed)")


def test_total_above_threshold_is_stat_only(tmp_path: Path) -> None:
    repo = FakeRepo(stat=_stat(1001, 1000))
    generator = FakeGenerator()
    orch, console = _orchestrator(repo, generator)

    orch.run(_options(tmp_path, version=None, max_diff=2000))

    assert "full_diff" not in repo.calls
    assert generator.requests[0].full_diff is None
    assert generator.requests[0].diff_stat == repo.stat
    assert console.find("stat-only mode (2001 lines changed, threshold 2000)")


def test_commit_log_failure_is_fatal(tmp_path: Path) -> None:
    repo = FakeRepo(failures={"commit_log": GitError(command="log", message="bad revision")})
    generator = FakeGenerator()
    orch, _ = _orchestrator(repo, generator)

    result = orch.run(_options(tmp_path, version=None))

    assert isinstance(result, Err)
    assert result.error.kind == "git_failed"
    assert result.error.step == "gather_data"
    assert "bad revision" in result.error.message
    assert generator.requests == []


def test_diff_stat_failure_is_fatal(tmp_path: Path) -> None:
    repo = FakeRepo(failures={"diff_stat": GitError(command="diff --stat", message="boom")})
    orch, _ = _orchestrator(repo, FakeGenerator())

    result = orch.run(_options(tmp_path, version=None))

    assert isinstance(result, Err)
    assert result.error.step == "gather_data"


def test_last_tag_failure_is_fatal(tmp_path: Path) -> None:
    repo = FakeRepo(failures={"last_tag": GitError(command="tag -l", message="not a git repository")})
    orch, _ = _orchestrator(repo, FakeGenerator())

    result = orch.run(_options(tmp_path, version=None))

    assert isinstance(result, Err)
    assert result.error.step == "resolve_last_tag"


# =============================================================================
# Preview mode
# =============================================================================


def test_preview_streams_to_stdout_without_side_effects(tmp_path: Path) -> None:
    repo = FakeRepo(tag="1.0.0")
    stdout = io.StringIO()
    orch, _ = _orchestrator(repo, FakeGenerator(), stdout=stdout)

    result = orch.run(_options(tmp_path, version=None))

    assert isinstance(result, Ok)
    assert result.value.mode == "preview"
    assert stdout.getvalue() == "## [Unreleased]\n\n### Added\n\n- Added login\n"
    assert not (tmp_path / "CHANGELOG.md").exists()
    assert repo.committed == []
    assert repo.tags == []


def test_preview_ignores_non_semver_last_tag(tmp_path: Path) -> None:
    orch, _ = _orchestrator(FakeRepo(tag="nightly"), FakeGenerator())

    result = orch.run(_options(tmp_path, version=None))

    assert isinstance(result, Ok)


def test_preview_writes_to_output_file(tmp_path: Path) -> None:
    stdout = io.StringIO()
    orch, _ = _orchestrator(FakeRepo(), FakeGenerator(), stdout=stdout)
    output = tmp_path / "preview.md"
    options = ReleaseOptions(
        repo=tmp_path,
        version=None,
        max_diff_lines=2000,
        changelog_path=tmp_path / "CHANGELOG.md",
        output=output,
    )

    result = orch.run(options)

    assert isinstance(result, Ok)
    assert output.read_text(encoding="utf-8").startswith("## [Unreleased]")
    assert stdout.getvalue() == ""
    assert not (tmp_path / "CHANGELOG.md").exists()


def test_preview_forwards_fragments_as_they_arrive(tmp_path: Path) -> None:
    events: list[str] = []

    class RecordingSink(io.StringIO):
        def write(self, s: str) -> int:
            events.append(f"write:{s}")
            return super().write(s)

    class TracingGenerator(FakeGenerator):
        def _chunks(self, request: ReleaseRequest) -> Iterator[str]:
            for chunk in ("one ", "two"):
                events.append(f"yield:{chunk}")
                yield chunk

    orch, _ = _orchestrator(FakeRepo(), TracingGenerator(), stdout=RecordingSink())

    orch.run(_options(tmp_path, version=None))

    assert events == ["yield:one ", "write:one ", "yield:two", "write:two", "write:\n"]


def test_preview_generation_failure_keeps_streamed_prefix(tmp_path: Path) -> None:
    stdout = io.StringIO()
    orch, _ = _orchestrator(FakeRepo(), FakeGenerator(fail_after=1), stdout=stdout)

    result = orch.run(_options(tmp_path, version=None))

    assert isinstance(result, Err)
    assert result.error.kind == "generation_failed"
    assert stdout.getvalue() == "## [Unreleased]"
