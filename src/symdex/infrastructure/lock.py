"""Cross-process exclusive lock around writes to a disk-backed index."""

from __future__ import annotations

import fcntl
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from symdex.infrastructure.db import IndexDatabase

logger = logging.getLogger(__name__)

T = TypeVar("T")


def lock_path(db: IndexDatabase) -> Path:
    """Lock file that stands for the database's backing file.

    SQLite keeps POSIX locks on the database file itself, and closing any
    other descriptor on that file would drop them, so the flock lives on a
    sibling ``<db>.lock`` file instead.
    """
    return Path(f"{db.database_path}.lock")


@contextmanager
def exclusive_lock(db: IndexDatabase) -> Iterator[None]:
    """Hold an exclusive advisory lock tied to the database's backing file.

    Blocks without timeout until the lock is free.  The lock is released
    on every exit path; a crashed holder releases it through the OS.
    In-memory databases cannot be shared between processes, so nothing
    is opened or locked for them.

    Only cooperating writers honour the lock.  Readers and directory-mode
    reindexing do not take it.
    """
    if db.is_in_memory:
        yield
        return

    path = lock_path(db)
    with open(path, "ab") as handle:
        logger.debug("Waiting for exclusive lock on %s", path)
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        logger.debug("Acquired exclusive lock on %s", path)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            logger.debug("Released exclusive lock on %s", path)


def with_exclusive_lock(db: IndexDatabase, body: Callable[[], T]) -> T:
    """Run *body* under :func:`exclusive_lock` and return its result."""
    with exclusive_lock(db):
        return body()
