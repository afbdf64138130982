"""Single-file indexer: parse one source file and replace its symbols."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from symdex.errors import IndexingFailedError
from symdex.indexing.code_indexer import ParseError, extract_symbols, get_lang_config

if TYPE_CHECKING:
    from symdex.infrastructure.db import IndexDatabase

logger = logging.getLogger(__name__)


def index_key(path: str | Path) -> str:
    """Normalized path under which a file is stored in the index."""
    return str(Path(path).resolve())


class FileIndexer:
    """Indexes one file at a time, from disk or from supplied content."""

    def __init__(self, db: IndexDatabase, *, console: Console | None = None) -> None:
        self._db = db
        self._console = console or Console(stderr=True)
        self._show_output = False

    def set_show_output(self, show_output: bool) -> FileIndexer:
        self._show_output = show_output
        return self

    def index(self, path: str | Path, content: str | bytes | None = None) -> int:
        """Index *path* and return the number of symbols stored.

        When *content* is ``None`` the file is read from disk; bytes are
        decoded as UTF-8.  Raises :class:`IndexingFailedError` if the
        file cannot be read or decoded, has no grammar, or does not parse;
        the index is left untouched in that case.
        """
        file_path = Path(path)
        config = get_lang_config(file_path.suffix)
        if config is None:
            raise IndexingFailedError(str(path), f"no parser for '{file_path.suffix}' files")

        if content is None:
            try:
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise IndexingFailedError(str(path), str(exc)) from exc
        elif isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise IndexingFailedError(str(path), str(exc)) from exc

        try:
            symbols = extract_symbols(content, file_path.suffix)
        except ParseError as exc:
            raise IndexingFailedError(str(path), str(exc)) from exc

        try:
            modified_at = file_path.stat().st_mtime
        except OSError:
            # Stream content for a file that is not on disk (yet).
            modified_at = 0.0

        key = index_key(file_path)
        with self._db.transaction() as conn:
            file_id = self._db.record_file(key, modified_at)
            conn.execute("DELETE FROM symbols WHERE file_id = ?", (file_id,))
            conn.executemany(
                "INSERT INTO symbols (file_id, name, kind, line_start, line_end, "
                "is_builtin, language) VALUES (?, ?, ?, ?, ?, 0, ?)",
                [
                    (
                        file_id,
                        sym["name"],
                        sym["kind"],
                        sym["line_start"],
                        sym["line_end"],
                        config.name,
                    )
                    for sym in symbols
                ],
            )

        logger.debug("Indexed %s: %d symbol(s)", key, len(symbols))
        if self._show_output:
            self._console.print(f"[green]indexed[/green] {key} ({len(symbols)} symbols)")
        return len(symbols)
