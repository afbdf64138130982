"""Reindex orchestrator: builtin bootstrap, path routing, locked single-file writes."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, TextIO

from symdex.errors import IndexingFailedError, InvalidInputError, InvalidPathError
from symdex.indexing.builtin_indexer import BuiltinIndexer
from symdex.indexing.file_indexer import FileIndexer
from symdex.indexing.project_indexer import ProjectIndexer
from symdex.indexing.scanner import Scanner
from symdex.infrastructure.config import SymdexConfig
from symdex.infrastructure.lock import exclusive_lock

if TYPE_CHECKING:
    from rich.console import Console

    from symdex.infrastructure.db import IndexDatabase

logger = logging.getLogger(__name__)

HAS_INDEXED_BUILTIN = "has_indexed_builtin"


class PathKind(Enum):
    """How a reindex request is dispatched."""

    DIRECTORY = "directory"
    SINGLE_FILE = "single_file"


@dataclass(frozen=True)
class ReindexRequest:
    """What to reindex and how to report on it."""

    path: str
    use_stream: bool = False
    verbose: bool = False
    stream_progress: bool = False

    def __post_init__(self) -> None:
        if not self.path:
            msg = "The file or directory to index is required."
            raise InvalidInputError(msg)


@dataclass(frozen=True)
class ReindexOutcome:
    """Result reported to the caller.

    ``result`` is always empty: failure details stay in the logs.
    """

    success: bool
    result: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps({"success": self.success, "result": self.result})


def _is_truthy(value: object) -> bool:
    return value not in (None, "", "0", 0)


def ensure_builtin_indexed(
    db: IndexDatabase,
    builtin_indexer: BuiltinIndexer,
    *,
    show_output: bool = False,
) -> bool:
    """Seed the builtin symbols unless the database records they are present.

    Returns ``True`` when the seed ran.  The flag is re-checked, the seed
    written and the flag set in one transaction, so a failing seed leaves
    the flag unset and its error propagates to the caller.
    """
    row = db.get_setting(HAS_INDEXED_BUILTIN)
    if row is not None and _is_truthy(row["value"]):
        return False

    with db.transaction():
        row = db.get_setting(HAS_INDEXED_BUILTIN)
        if row is not None and _is_truthy(row["value"]):
            # Another process seeded it while we were waiting.
            return False

        builtin_indexer.set_show_output(show_output).index()

        if row is None:
            db.insert_setting(HAS_INDEXED_BUILTIN, "1")
        else:
            db.update_setting(row["id"], "1")

    logger.info("Builtin symbols indexed")
    return True


def route_path(path: str | Path, *, use_stream: bool) -> PathKind:
    """Decide whether *path* is reindexed as a directory or as one file.

    A directory always wins, even in stream mode.  Stream mode accepts a
    path that does not exist on disk.
    """
    target = Path(path)
    if target.is_dir():
        return PathKind.DIRECTORY
    if target.is_file() or use_stream:
        return PathKind.SINGLE_FILE
    raise InvalidPathError(str(path))


class Reindexer:
    """Brings the index up to date for a directory, a file or piped content.

    Collaborators are built once (see :meth:`create`) and reused for every
    call.  The scanner's file modified map therefore reflects the index at
    construction time; build a new ``Reindexer`` to pick up changes made by
    other processes.
    """

    def __init__(
        self,
        db: IndexDatabase,
        *,
        builtin_indexer: BuiltinIndexer,
        project_indexer: ProjectIndexer,
        file_indexer: FileIndexer,
        stdin: BinaryIO | TextIO | None = None,
    ) -> None:
        self._db = db
        self._builtin_indexer = builtin_indexer
        self._project_indexer = project_indexer
        self._file_indexer = file_indexer
        self._stdin = stdin

    @classmethod
    def create(
        cls,
        db: IndexDatabase,
        config: SymdexConfig | None = None,
        *,
        stdin: BinaryIO | TextIO | None = None,
        progress_stream: TextIO | None = None,
        console: Console | None = None,
    ) -> Reindexer:
        """Wire the default collaborators around *db*."""
        config = config or SymdexConfig()
        file_indexer = FileIndexer(db, console=console)
        scanner = Scanner(
            db.get_file_modified_map(),
            extensions=config.extensions,
            exclude=config.exclude,
        )
        return cls(
            db,
            builtin_indexer=BuiltinIndexer(db, console=console),
            project_indexer=ProjectIndexer(
                db,
                file_indexer,
                scanner,
                progress_stream=progress_stream,
                console=console,
            ),
            file_indexer=file_indexer,
            stdin=stdin,
        )

    def reindex_path(
        self,
        path: str,
        *,
        use_stream: bool = False,
        verbose: bool = False,
        stream_progress: bool = False,
    ) -> ReindexOutcome:
        """Build a :class:`ReindexRequest` and run it."""
        return self.reindex(
            ReindexRequest(
                path=path,
                use_stream=use_stream,
                verbose=verbose,
                stream_progress=stream_progress,
            )
        )

    def reindex(self, request: ReindexRequest) -> ReindexOutcome:
        """Reindex ``request.path``.

        Raises :class:`InvalidPathError` before touching the database when
        the path can't be routed.  Only :class:`IndexingFailedError` from a
        single-file reindex becomes ``success=False``; everything else
        propagates.
        """
        kind = route_path(request.path, use_stream=request.use_stream)

        ensure_builtin_indexed(self._db, self._builtin_indexer, show_output=request.verbose)

        if kind is PathKind.DIRECTORY:
            # No file lock here: directory writers may interleave with single-file writers.
            self._project_indexer.set_stream_progress(request.stream_progress).set_show_output(
                request.verbose
            ).index(request.path)
            return ReindexOutcome(success=True)

        content: str | bytes | None = None
        if request.use_stream:
            # Blocks until the writer closes the stream; the file indexer decodes bytes.
            content = (self._stdin or sys.stdin.buffer).read() or None

        try:
            with exclusive_lock(self._db):
                self._file_indexer.set_show_output(request.verbose).index(request.path, content)
        except IndexingFailedError as exc:
            logger.warning("%s", exc)
            return ReindexOutcome(success=False)

        return ReindexOutcome(success=True)
