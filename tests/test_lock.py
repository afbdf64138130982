"""Tests for symdex.infrastructure.lock — exclusive advisory lock on the index file."""

from __future__ import annotations

import fcntl
import multiprocessing
import threading
import time
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from symdex.infrastructure.db import open_db
from symdex.infrastructure.lock import exclusive_lock, lock_path, with_exclusive_lock

if TYPE_CHECKING:
    from multiprocessing.queues import Queue
    from pathlib import Path

    from symdex.infrastructure.db import IndexDatabase


def _assert_no_overlap(intervals: list[tuple[float, float]]) -> None:
    ordered = sorted(intervals)
    for (_, prev_end), (next_start, _) in zip(ordered, ordered[1:]):
        assert next_start >= prev_end


def _hold_lock(db_path: str, results: Queue[tuple[float, float]]) -> None:
    handle = open_db(db_path)
    try:
        with exclusive_lock(handle):
            start = time.monotonic()
            time.sleep(0.05)
            end = time.monotonic()
    finally:
        handle.close()
    results.put((start, end))


class TestDiskBacked:
    def test_locks_and_unlocks_once(self, db: IndexDatabase) -> None:
        with patch.object(fcntl, "flock", wraps=fcntl.flock) as flock:
            with exclusive_lock(db):
                pass
        ops = [call.args[1] for call in flock.call_args_list]
        assert ops == [fcntl.LOCK_EX, fcntl.LOCK_UN]

    def test_released_when_body_raises(self, db: IndexDatabase) -> None:
        with pytest.raises(RuntimeError), exclusive_lock(db):
            raise RuntimeError("boom")

        # A fresh non-blocking attempt succeeds only if the lock was released.
        with open(lock_path(db), "rb") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def test_blocks_other_holders(self, db: IndexDatabase) -> None:
        with exclusive_lock(db), open(lock_path(db), "rb") as handle:
            with pytest.raises(BlockingIOError):
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

    def test_lock_file_sits_next_to_database(self, db: IndexDatabase, db_path: Path) -> None:
        with exclusive_lock(db):
            assert lock_path(db) == db_path.with_name("index.db.lock")
            assert lock_path(db).exists()

    def test_with_exclusive_lock_returns_body_result(self, db: IndexDatabase) -> None:
        assert with_exclusive_lock(db, lambda: 42) == 42

    def test_concurrent_bodies_never_overlap(self, db: IndexDatabase, db_path: Path) -> None:
        intervals: list[tuple[float, float]] = []
        record = threading.Lock()

        def worker() -> None:
            handle = open_db(db_path)
            try:
                with exclusive_lock(handle):
                    start = time.monotonic()
                    time.sleep(0.05)
                    end = time.monotonic()
                with record:
                    intervals.append((start, end))
            finally:
                handle.close()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert len(intervals) == 4
        _assert_no_overlap(intervals)

    def test_concurrent_processes_never_overlap(self, db: IndexDatabase, db_path: Path) -> None:
        ctx = multiprocessing.get_context("fork")
        results: Queue[tuple[float, float]] = ctx.Queue()
        procs = [ctx.Process(target=_hold_lock, args=(str(db_path), results)) for _ in range(3)]
        for p in procs:
            p.start()
        intervals = [results.get(timeout=10) for _ in procs]
        for p in procs:
            p.join(timeout=10)

        assert [p.exitcode for p in procs] == [0, 0, 0]
        _assert_no_overlap(intervals)


class TestInMemory:
    def test_never_opens_or_locks(self, memory_db: IndexDatabase) -> None:
        with (
            patch("symdex.infrastructure.lock.open", create=True) as fake_open,
            patch.object(fcntl, "flock") as flock,
        ):
            assert with_exclusive_lock(memory_db, lambda: "ran") == "ran"
        fake_open.assert_not_called()
        flock.assert_not_called()
