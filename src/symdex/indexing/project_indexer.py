"""Project indexer: incremental reindex of every changed file in a directory."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from rich.console import Console

from symdex.errors import IndexingFailedError

if TYPE_CHECKING:
    from symdex.indexing.file_indexer import FileIndexer
    from symdex.indexing.scanner import Scanner
    from symdex.infrastructure.db import IndexDatabase

logger = logging.getLogger(__name__)


@dataclass
class ProjectIndexResult:
    """Summary of a directory reindex."""

    files_indexed: int = 0
    files_failed: int = 0
    files_removed: int = 0
    symbols_indexed: int = 0
    failures: list[str] = field(default_factory=list)


class ProjectIndexer:
    """Walks a directory and hands each changed file to the file indexer.

    A file that fails to index is logged and skipped; any other error
    aborts the whole run.
    """

    def __init__(
        self,
        db: IndexDatabase,
        file_indexer: FileIndexer,
        scanner: Scanner,
        *,
        progress_stream: TextIO | None = None,
        console: Console | None = None,
    ) -> None:
        self._db = db
        self._file_indexer = file_indexer
        self._scanner = scanner
        self._progress_stream = progress_stream
        self._console = console or Console(stderr=True)
        self._stream_progress = False
        self._show_output = False

    def set_stream_progress(self, stream_progress: bool) -> ProjectIndexer:
        self._stream_progress = stream_progress
        return self

    def set_show_output(self, show_output: bool) -> ProjectIndexer:
        self._show_output = show_output
        self._file_indexer.set_show_output(show_output)
        return self

    def _report_progress(self, done: int, total: int) -> None:
        if not self._stream_progress:
            return
        stream = self._progress_stream or sys.stderr
        percent = 100 if total == 0 else done * 100 // total
        stream.write(f"{percent}\n")
        stream.flush()

    def index(self, directory: str | Path) -> ProjectIndexResult:
        """Bring the index up to date with every file under *directory*."""
        root = Path(directory)
        result = ProjectIndexResult()

        removed = self._scanner.removed(root)
        if removed:
            with self._db.transaction():
                for path in removed:
                    self._db.remove_file(path)
            result.files_removed = len(removed)
            logger.info("Removed %d vanished file(s) from the index", len(removed))

        changed = self._scanner.scan(root)
        total = len(changed)
        logger.info("Reindexing %d changed file(s) under %s", total, root)
        if self._show_output:
            self._console.print(f"Indexing [bold]{total}[/bold] file(s) under {root}")

        self._report_progress(0, total)
        for done, file_path in enumerate(changed, start=1):
            try:
                count = self._file_indexer.index(file_path)
            except IndexingFailedError as exc:
                logger.warning("Skipping %s: %s", file_path, exc.reason)
                result.files_failed += 1
                result.failures.append(str(file_path))
                if self._show_output:
                    self._console.print(f"[yellow]skipped[/yellow] {file_path}: {exc.reason}")
            else:
                result.files_indexed += 1
                result.symbols_indexed += count
            self._report_progress(done, total)

        return result
