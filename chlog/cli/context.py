from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer

from chlog.core.config import Config, load_config_or_default
from chlog.core.result import Err
from chlog.output.console import ConsoleProtocol, RichConsole
from chlog.output.errors import print_release_error, release_error_exit_code
from chlog.release.errors import ReleaseError


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo: Path
    config: Config
    console: ConsoleProtocol


def exit_with_error(error: ReleaseError, *, console: ConsoleProtocol | None = None) -> NoReturn:
    print_release_error(error, console if console is not None else RichConsole())
    raise typer.Exit(code=release_error_exit_code(error))


def build_context(repo: Path) -> CLIContext:
    try:
        root = repo.expanduser().resolve()
    except OSError as e:
        exit_with_error(
            ReleaseError(kind="invalid_input", message=f"repo path {str(repo)!r} not accessible: {e}")
        )

    if not root.is_dir():
        exit_with_error(
            ReleaseError(kind="invalid_input", message=f"repo path {str(repo)!r} not accessible")
        )

    config_result = load_config_or_default(root)
    if isinstance(config_result, Err):
        error = config_result.error
        exit_with_error(
            ReleaseError(
                kind="config_invalid",
                message=error.message,
                hint=str(error.path) if error.path is not None else None,
            )
        )

    return CLIContext(repo=root, config=config_result.value, console=RichConsole())
