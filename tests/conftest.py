"""Shared test fixtures for symdex."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from symdex.infrastructure.db import IN_MEMORY, IndexDatabase, open_db

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / ".symdex" / "index.db"


@pytest.fixture()
def db(db_path: Path) -> Iterator[IndexDatabase]:
    """A disk-backed index database."""
    database = open_db(db_path)
    yield database
    database.close()


@pytest.fixture()
def memory_db() -> Iterator[IndexDatabase]:
    database = open_db(IN_MEMORY)
    yield database
    database.close()


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    """A small project with Python and PHP sources."""
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    (root / "lib").mkdir()
    (root / "src" / "app.py").write_text(
        "class App:\n    def run(self):\n        pass\n\n\ndef main():\n    App().run()\n"
    )
    (root / "lib" / "util.php").write_text("<?php\nfunction helper() {}\nclass Box {}\n")
    return root


def _fluent_mock() -> MagicMock:
    mock = MagicMock()
    mock.set_show_output.return_value = mock
    mock.set_stream_progress.return_value = mock
    return mock


@pytest.fixture()
def make_collaborator() -> Callable[[], MagicMock]:
    """Factory for collaborator doubles whose ``set_*`` methods return themselves."""
    return _fluent_mock
