"""Builtin symbol seed: runtime-provided names indexed once per database."""

from __future__ import annotations

import builtins
import logging
from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from symdex.infrastructure.db import IndexDatabase

logger = logging.getLogger(__name__)


def _builtin_kind(value: object) -> str:
    if isinstance(value, type):
        return "class"
    if callable(value):
        return "function"
    return "constant"


def collect_builtins() -> list[tuple[str, str]]:
    """Return sorted ``(name, kind)`` pairs for the public names in ``builtins``."""
    return [
        (name, _builtin_kind(getattr(builtins, name)))
        for name in sorted(dir(builtins))
        if not name.startswith("_")
    ]


class BuiltinIndexer:
    """Writes the builtin symbol seed.

    Running it again replaces the previous seed rather than duplicating it.
    The caller decides *when* to run it (see ``ensure_builtin_indexed``).
    """

    def __init__(self, db: IndexDatabase, *, console: Console | None = None) -> None:
        self._db = db
        self._console = console or Console(stderr=True)
        self._show_output = False

    def set_show_output(self, show_output: bool) -> BuiltinIndexer:
        self._show_output = show_output
        return self

    def index(self) -> int:
        symbols = collect_builtins()
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM symbols WHERE is_builtin = 1")
            conn.executemany(
                "INSERT INTO symbols (file_id, name, kind, is_builtin, language) "
                "VALUES (NULL, ?, ?, 1, 'python')",
                symbols,
            )

        logger.info("Indexed %d builtin symbol(s)", len(symbols))
        if self._show_output:
            self._console.print(f"[green]indexed[/green] {len(symbols)} builtin symbols")
        return len(symbols)
