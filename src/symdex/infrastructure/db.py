"""SQLite index database: connection management, schema, settings helpers."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

# Schema version — increment on breaking changes
SCHEMA_VERSION = "1"

# Sentinel path for databases without a backing file.
IN_MEMORY = ":memory:"

DEFAULT_BUSY_TIMEOUT = 30.0

_SCHEMA_SQL = """\
-- Persistent key/value facts about the index
CREATE TABLE IF NOT EXISTS settings (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT NOT NULL UNIQUE,
    value TEXT
);

-- Indexed source files
CREATE TABLE IF NOT EXISTS files (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    path        TEXT NOT NULL UNIQUE,
    modified_at REAL NOT NULL DEFAULT 0,
    indexed_at  TEXT NOT NULL
);

-- Extracted symbols (file_id is NULL for builtin symbols)
CREATE TABLE IF NOT EXISTS symbols (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    file_id    INTEGER REFERENCES files(id) ON DELETE CASCADE,
    name       TEXT NOT NULL,
    kind       TEXT NOT NULL CHECK(kind IN (
        'function','class','interface','trait','type','constant','method'
    )),
    line_start INTEGER NOT NULL DEFAULT 0,
    line_end   INTEGER NOT NULL DEFAULT 0,
    is_builtin INTEGER NOT NULL DEFAULT 0,
    language   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_symbols_name ON symbols(name);
CREATE INDEX IF NOT EXISTS idx_symbols_file ON symbols(file_id);
CREATE INDEX IF NOT EXISTS idx_symbols_builtin ON symbols(is_builtin);
"""


class IndexDatabase:
    """Handle to the index store.

    Wraps a connection in autocommit mode; multi-statement writes go
    through :meth:`transaction`.  ``database_path`` is either the backing
    file or the :data:`IN_MEMORY` sentinel.
    """

    def __init__(self, connection: sqlite3.Connection, database_path: Path | str) -> None:
        self._conn = connection
        self._path = database_path
        self._depth = 0

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @property
    def database_path(self) -> Path | str:
        return self._path

    @property
    def is_in_memory(self) -> bool:
        return self._path == IN_MEMORY

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block inside one write transaction.

        Re-entrant: only the outermost level begins and commits.  Any
        exception rolls the whole transaction back and is re-raised.
        """
        if self._depth > 0:
            self._depth += 1
            try:
                yield self._conn
            finally:
                self._depth -= 1
            return

        self._conn.execute("BEGIN IMMEDIATE")
        self._depth = 1
        try:
            yield self._conn
        except BaseException:
            self._depth = 0
            self._conn.execute("ROLLBACK")
            raise
        self._depth = 0
        self._conn.execute("COMMIT")

    # -- settings ----------------------------------------------------------

    def get_setting(self, name: str) -> sqlite3.Row | None:
        """Return the ``(id, value)`` row for *name*, or ``None``."""
        row: sqlite3.Row | None = self._conn.execute(
            "SELECT id, value FROM settings WHERE name = ?", (name,)
        ).fetchone()
        return row

    def insert_setting(self, name: str, value: str) -> int:
        cur = self._conn.execute(
            "INSERT INTO settings (name, value) VALUES (?, ?)", (name, value)
        )
        return int(cur.lastrowid or 0)

    def update_setting(self, setting_id: int, value: str) -> None:
        self._conn.execute("UPDATE settings SET value = ? WHERE id = ?", (value, setting_id))

    def set_setting(self, name: str, value: str) -> None:
        """Insert or update a setting by name."""
        self._conn.execute(
            "INSERT INTO settings (name, value) VALUES (?, ?) "
            "ON CONFLICT(name) DO UPDATE SET value = excluded.value",
            (name, value),
        )

    # -- files -------------------------------------------------------------

    def get_file_modified_map(self) -> dict[str, float]:
        """Return ``{path: modified_at}`` for every indexed file."""
        rows = self._conn.execute("SELECT path, modified_at FROM files").fetchall()
        return {row["path"]: float(row["modified_at"]) for row in rows}

    def record_file(self, path: str, modified_at: float) -> int:
        """Insert or refresh a ``files`` row and return its id."""
        now = datetime.now(tz=timezone.utc).isoformat()
        self._conn.execute(
            "INSERT INTO files (path, modified_at, indexed_at) VALUES (?, ?, ?) "
            "ON CONFLICT(path) DO UPDATE SET modified_at = excluded.modified_at, "
            "indexed_at = excluded.indexed_at",
            (path, modified_at, now),
        )
        row = self._conn.execute("SELECT id FROM files WHERE path = ?", (path,)).fetchone()
        return int(row["id"])

    def remove_file(self, path: str) -> None:
        """Delete a file and, by cascade, its symbols."""
        self._conn.execute("DELETE FROM files WHERE path = ?", (path,))

    def close(self) -> None:
        self._conn.close()


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they don't exist.

    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn.executescript(_SCHEMA_SQL)


def open_db(
    db_path: Path | str,
    *,
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
) -> IndexDatabase:
    """Open (or create) the index database and make sure the schema exists.

    Pass :data:`IN_MEMORY` for a throwaway index without a backing file.
    Disk databases use WAL journal mode (persistent per-file); foreign keys
    are enabled per connection.
    """
    if str(db_path) == IN_MEMORY:
        path: Path | str = IN_MEMORY
    else:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), timeout=busy_timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    if path != IN_MEMORY:
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    create_schema(conn)

    db = IndexDatabase(conn, path)
    if db.get_setting("schema_version") is None:
        db.set_setting("schema_version", SCHEMA_VERSION)
    return db
