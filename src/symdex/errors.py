"""Exception hierarchy shared by the indexers, the orchestrator and the CLI."""

from __future__ import annotations


class SymdexError(Exception):
    """Base class for all symdex errors."""


class InvalidInputError(SymdexError, ValueError):
    """Required input (such as the path to index) is missing or empty."""


class InvalidPathError(SymdexError, ValueError):
    """Path is neither an existing directory nor an existing file."""

    def __init__(self, path: str) -> None:
        super().__init__(f'The specified file or directory "{path}" does not exist!')
        self.path = path


class IndexingFailedError(SymdexError):
    """A single file could not be indexed.

    This is the only recoverable indexing failure: callers may report it
    and carry on, while every other exception is treated as fatal.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Indexing failed for {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigError(SymdexError):
    """``.symdex/config.yml`` is malformed."""
