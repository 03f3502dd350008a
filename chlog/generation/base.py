"""Generator contract shared by the real client and test fakes."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from chlog.release.model import ReleaseRequest


class GenerationError(Exception):
    """The generation request could not be sent or its stream broke off."""


class TextGenerator(Protocol):
    def stream(self, request: ReleaseRequest) -> Iterator[str]:
        """Yield changelog text fragments as they arrive.

        The iterator is lazy, finite and single-use.

        Raises:
            GenerationError: On network or stream failure, possibly after
                some fragments were already yielded.
        """
        ...
