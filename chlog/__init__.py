"""chlog: LLM-written Keep a Changelog entries from git history."""

__version__ = "0.1.0"
