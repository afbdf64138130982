"""Change scanner: decide which files under a directory need reindexing."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import TYPE_CHECKING

from symdex.indexing.code_indexer import supported_extensions
from symdex.indexing.file_indexer import index_key

if TYPE_CHECKING:
    from collections.abc import Iterable


class Scanner:
    """Compares files on disk against the recorded modification times.

    The file modified map is taken as given at construction and never
    refreshed, so one scanner reflects the index as it was when built.
    """

    def __init__(
        self,
        file_modified_map: dict[str, float],
        *,
        extensions: Iterable[str] | None = None,
        exclude: Iterable[str] = (),
    ) -> None:
        self._modified = file_modified_map
        available = supported_extensions()
        self._extensions = (
            available if extensions is None else frozenset(extensions) & available
        )
        self._exclude = tuple(exclude)

    def _is_excluded(self, rel: str) -> bool:
        return any(
            fnmatch.fnmatch(rel, pattern) or fnmatch.fnmatch(rel, f"*/{pattern}")
            for pattern in self._exclude
        )

    def candidates(self, directory: Path) -> list[Path]:
        """All indexable files under *directory*, sorted."""
        result: list[Path] = []
        for file_path in sorted(directory.rglob("*")):
            if file_path.suffix not in self._extensions or not file_path.is_file():
                continue
            rel = file_path.relative_to(directory)
            # Skip anything inside a hidden directory (.git, .symdex, .venv, ...).
            if any(part.startswith(".") for part in rel.parts[:-1]):
                continue
            if self._is_excluded(rel.as_posix()):
                continue
            result.append(file_path)
        return result

    def scan(self, directory: Path) -> list[Path]:
        """Files under *directory* that are new or modified since last indexed."""
        changed: list[Path] = []
        for file_path in self.candidates(directory):
            stored = self._modified.get(index_key(file_path))
            if stored is None or file_path.stat().st_mtime > stored:
                changed.append(file_path)
        return changed

    def removed(self, directory: Path) -> list[str]:
        """Indexed paths under *directory* that no longer exist on disk."""
        prefix = index_key(directory).rstrip(os.sep) + os.sep
        return sorted(
            path for path in self._modified if path.startswith(prefix) and not Path(path).is_file()
        )
