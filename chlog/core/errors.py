"""Process exit codes.

Every fatal error of a run maps to one of these codes so scripts wrapping
``chlog`` can tell a bad ``--version`` apart from a network failure. The values
are part of the command-line contract; do not renumber them.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    # Bad version, bad path, missing API key, bad config.
    USER_ERROR = 1
    GIT_ERROR = 2
    # 3 is unused.
    NETWORK_ERROR = 4
    IO_ERROR = 5
    # Release commit created, tag not created.
    PARTIAL_RELEASE = 6
