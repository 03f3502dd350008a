from __future__ import annotations

import os
from pathlib import Path

import typer

from chlog.cli.context import build_context, exit_with_error
from chlog.core.config import API_KEY_ENV_VAR
from chlog.core.result import Err
from chlog.generation.client import AnthropicGenerator
from chlog.git.repository import Repository
from chlog.release.errors import ReleaseError
from chlog.release.model import ReleaseOptions
from chlog.release.orchestrator import ReleaseOrchestrator


app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    help="Generate a Keep a Changelog entry from git history with Claude.",
)


@app.command()
def generate(
    repo: Path = typer.Option(Path("."), "--repo", "-r", help="Path to git repo"),
    model: str | None = typer.Option(None, "--model", "-m", help="Anthropic model ID"),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Preview: write to this file instead of stdout. Release: changelog to update.",
    ),
    version: str | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Release version (e.g. v1.2.0); updates CHANGELOG.md and creates a git tag",
    ),
    max_diff: int | None = typer.Option(
        None,
        "--max-diff",
        min=0,
        help="Line threshold for full diff inclusion [default: 2000]",
    ),
    api_key: str = typer.Option(
        "",
        "--api-key",
        help=f"Anthropic API key [default: ${API_KEY_ENV_VAR}]",
    ),
) -> None:
    """Preview the next changelog entry, or release it with --version."""
    key = api_key or os.environ.get(API_KEY_ENV_VAR, "")
    if not key:
        exit_with_error(
            ReleaseError(
                kind="invalid_input",
                message="no API key provided",
                hint=f"pass --api-key or set ${API_KEY_ENV_VAR}",
            )
        )

    if version is not None:
        version = version.strip() or None

    ctx = build_context(repo)
    config = ctx.config

    changelog_path = ctx.repo / config.changelog.path
    if version is not None and output is not None:
        # git runs with -C <repo>; a cwd-relative path would name a different file there.
        changelog_path = output.expanduser().absolute()

    options = ReleaseOptions(
        repo=ctx.repo,
        version=version,
        max_diff_lines=max_diff if max_diff is not None else config.diff.max_lines,
        changelog_path=changelog_path,
        output=output if version is None else None,
    )

    generator = AnthropicGenerator(
        api_key=key,
        model=model or config.generation.model,
        max_tokens=config.generation.max_tokens,
    )
    orchestrator = ReleaseOrchestrator(
        repo=Repository(ctx.repo),
        generator=generator,
        console=ctx.console,
    )

    result = orchestrator.run(options)
    if isinstance(result, Err):
        exit_with_error(result.error, console=ctx.console)


def main() -> None:
    app()
