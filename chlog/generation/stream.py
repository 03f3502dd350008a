"""The two consumers of a fragment stream.

Preview mode forwards each fragment as soon as it arrives so a person can
watch the entry being written; release mode needs the whole text before it
can touch the changelog file, so it folds the stream into one string.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TextIO


def forward_chunks(chunks: Iterable[str], sink: TextIO) -> str:
    """Write each fragment to sink immediately, then end with a newline.

    Returns the text that was written.

    Raises:
        OSError: If the sink cannot be written.
    """
    parts: list[str] = []
    for chunk in chunks:
        sink.write(chunk)
        sink.flush()
        parts.append(chunk)

    text = "".join(parts)
    if not text.endswith("\n"):
        sink.write("\n")
        sink.flush()
        text += "\n"
    return text


def collect_chunks(chunks: Iterable[str]) -> str:
    return "".join(chunks)
