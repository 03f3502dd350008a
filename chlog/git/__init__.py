"""Git operations used by a changelog run.

Usage:
    from chlog.git import Repository

    repo = Repository(Path("."))
    match repo.last_tag():
        case Ok(None):
            print("no releases yet")
        case Ok(tag):
            print(f"last release: {tag}")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from chlog.git.repository import EMPTY_TREE_SHA, GitError, Repository

__all__ = [
    "EMPTY_TREE_SHA",
    "GitError",
    "Repository",
]
