"""Typed configuration loading.

A repository may carry a ``.chlog.toml`` file next to its ``.git`` directory.
Every key is optional; command-line flags override whatever the file sets.

    [generation]
    model = "claude-sonnet-4-6"
    max_tokens = 4096

    [diff]
    max_lines = 2000

    [changelog]
    path = "CHANGELOG.md"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_table

__all__ = [
    "Config",
    "ChangelogConfig",
    "ConfigError",
    "DiffConfig",
    "GenerationConfig",
    "load_config",
    "load_config_or_default",
    "CONFIG_FILE_NAME",
    "API_KEY_ENV_VAR",
    "DEFAULT_MODEL",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_MAX_DIFF_LINES",
    "DEFAULT_CHANGELOG_NAME",
]

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

CONFIG_FILE_NAME = ".chlog.toml"
API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"

DEFAULT_MODEL = "claude-sonnet-4-6"
DEFAULT_MAX_TOKENS = 4096

# Keeps prompts bounded while still sending line-level detail for typical releases.
DEFAULT_MAX_DIFF_LINES = 2000

DEFAULT_CHANGELOG_NAME = "CHANGELOG.md"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class GenerationConfig:
    """Text generation settings."""

    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS


@dataclass(frozen=True, slots=True)
class DiffConfig:
    """Diff strategy settings."""

    max_lines: int = DEFAULT_MAX_DIFF_LINES


@dataclass(frozen=True, slots=True)
class ChangelogConfig:
    """Changelog file location, relative to the repository root."""

    path: str = DEFAULT_CHANGELOG_NAME


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    generation: GenerationConfig = field(default_factory=GenerationConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If a numeric setting is out of range.
        """
        generation: StrDict = get_table(data, "generation") or {}
        diff: StrDict = get_table(data, "diff") or {}
        changelog: StrDict = get_table(data, "changelog") or {}

        max_tokens = get_int(generation, "max_tokens")
        if max_tokens is not None and max_tokens <= 0:
            raise ValueError(f"generation.max_tokens must be positive, got {max_tokens}")

        max_lines = get_int(diff, "max_lines")
        if max_lines is not None and max_lines < 0:
            raise ValueError(f"diff.max_lines must not be negative, got {max_lines}")

        return cls(
            generation=GenerationConfig(
                model=get_str(generation, "model") or DEFAULT_MODEL,
                max_tokens=max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
            ),
            diff=DiffConfig(
                max_lines=max_lines if max_lines is not None else DEFAULT_MAX_DIFF_LINES,
            ),
            changelog=ChangelogConfig(
                path=get_str(changelog, "path") or DEFAULT_CHANGELOG_NAME,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, mapping read and syntax errors to ConfigError."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the config file.

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(repo_root: Path) -> Result[Config, ConfigError]:
    """Load ``.chlog.toml`` from a repository, or defaults when it is absent.

    A file that exists but cannot be parsed is still an error.
    """
    path = repo_root / CONFIG_FILE_NAME
    if not path.is_file():
        return Ok(Config())
    return load_config(path)
