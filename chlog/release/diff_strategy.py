from __future__ import annotations

import re

from chlog.release.model import DiffStrategy

_CHANGED_LINES_RE = re.compile(r"(\d+) insertion|(\d+) deletion")


def count_changed_lines(stat: str) -> int:
    """Sum every "N insertion(s)" and "N deletion(s)" count in ``git diff --stat`` text."""
    total = 0
    for insertions, deletions in _CHANGED_LINES_RE.findall(stat):
        total += int(insertions or deletions)
    return total


def select_strategy(total_changed_lines: int, threshold: int) -> DiffStrategy:
    # Boundary inclusive: exactly `threshold` lines still gets the full diff.
    if total_changed_lines <= threshold:
        return DiffStrategy.FULL_DIFF
    return DiffStrategy.STAT_ONLY
