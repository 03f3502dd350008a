from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from chlog.core.result import Err, Ok, Result
from chlog.release.errors import ReleaseError

_NUMERIC_RE = re.compile(r"[0-9]+")
_COMPONENTS = ("major", "minor", "patch")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class Comparison(Enum):
    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"


@dataclass(frozen=True, slots=True)
class VersionParseError:
    """Why a version string was rejected.

    ``component`` is None when the overall shape is wrong (too few parts).
    """

    text: str
    message: str
    component: str | None = None


def parse_version(text: str) -> Result[Version, VersionParseError]:
    """Parse ``MAJOR.MINOR.PATCH`` with an optional leading ``v``.

    Anything after the second dot belongs to the patch component, so
    ``1.2.3.4`` and ``1.2.3-beta.1`` fail on ``patch``.
    """
    stripped = text.removeprefix("v")
    parts = stripped.split(".", 2)
    if len(parts) != 3:
        return Err(
            VersionParseError(
                text=text,
                message=f"version {text!r} must be in vMAJOR.MINOR.PATCH format (e.g. v1.2.0)",
            )
        )

    numbers: list[int] = []
    for name, part in zip(_COMPONENTS, parts):
        if _NUMERIC_RE.fullmatch(part) is None:
            return Err(
                VersionParseError(
                    text=text,
                    message=f"version {text!r}: invalid {name} component",
                    component=name,
                )
            )
        numbers.append(int(part))

    return Ok(Version(numbers[0], numbers[1], numbers[2]))


def compare(a: Version, b: Version) -> Comparison:
    if a < b:
        return Comparison.LESS
    if a > b:
        return Comparison.GREATER
    return Comparison.EQUAL


def validate_new_version(new: str, last: str | None) -> Result[Version, ReleaseError]:
    """Accept ``new`` if it is valid and strictly greater than ``last``.

    With no previous tag any valid version is accepted. A previous tag that is
    not semver makes every version unacceptable: there is nothing to compare to.
    """
    parsed = parse_version(new).map_err(
        lambda e: ReleaseError(kind="invalid_version", message=e.message)
    )
    if isinstance(parsed, Err):
        return parsed
    if last is None:
        return parsed

    last_parsed = parse_version(last)
    if isinstance(last_parsed, Err):
        return Err(
            ReleaseError(
                kind="unparsable_last_tag",
                message=f"last tag {last!r} is not valid semver; cannot compare versions",
            )
        )

    if compare(parsed.value, last_parsed.value) is not Comparison.GREATER:
        return Err(
            ReleaseError(
                kind="version_not_greater",
                message=f"version {new} must be greater than the last release tag {last}",
            )
        )
    return parsed
