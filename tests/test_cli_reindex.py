"""Tests for `symdex reindex` CLI command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import yaml
from click.testing import CliRunner

from symdex import __version__
from symdex.cli import main
from symdex.infrastructure.db import open_db

if TYPE_CHECKING:
    from pathlib import Path

    from click.testing import Result


def _outcome(result: Result) -> dict[str, object]:
    """Parse the JSON outcome line (stderr may be mixed into output)."""
    for line in reversed(result.output.splitlines()):
        if line.startswith('{"success"'):
            parsed: dict[str, object] = json.loads(line)
            return parsed
    raise AssertionError(f"no outcome in output: {result.output!r}")


class TestReindexCommand:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_directory(self, project: Path) -> None:
        result = CliRunner().invoke(main, ["reindex", "--source", str(project)])

        assert result.exit_code == 0, result.output
        assert _outcome(result) == {"success": True, "result": {}}
        db_path = project / ".symdex" / "index.db"
        assert db_path.exists()
        db = open_db(db_path)
        try:
            row = db.connection.execute("SELECT 1 FROM symbols WHERE name = 'helper'").fetchone()
            flag = db.get_setting("has_indexed_builtin")
        finally:
            db.close()
        assert row is not None
        assert flag is not None
        assert flag["value"] == "1"

    def test_single_file(self, project: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "shared.db"
        result = CliRunner().invoke(
            main,
            ["reindex", "--source", str(project / "src" / "app.py"), "--database", str(db_path)],
        )
        assert result.exit_code == 0, result.output
        assert _outcome(result)["success"] is True

    def test_file_that_fails_to_index(self, tmp_path: Path) -> None:
        broken = tmp_path / "broken.py"
        broken.write_text("def broken(:\n")
        result = CliRunner().invoke(
            main, ["reindex", "--source", str(broken), "--database", ":memory:"]
        )
        assert result.exit_code == 1
        assert _outcome(result) == {"success": False, "result": {}}

    def test_stdin(self, tmp_path: Path) -> None:
        db_path = tmp_path / "index.db"
        result = CliRunner().invoke(
            main,
            [
                "reindex",
                "--source",
                str(tmp_path / "unsaved.php"),
                "--stdin",
                "--database",
                str(db_path),
            ],
            input="<?php\nfunction piped() {}\n",
        )
        assert result.exit_code == 0, result.output
        db = open_db(db_path)
        try:
            row = db.connection.execute("SELECT kind FROM symbols WHERE name = 'piped'").fetchone()
        finally:
            db.close()
        assert row["kind"] == "function"

    def test_undecodable_stdin(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            main,
            [
                "reindex",
                "--source",
                str(tmp_path / "a.py"),
                "--stdin",
                "--database",
                ":memory:",
            ],
            input=b"def f(:\xff\xfe\n",
        )
        assert result.exit_code == 1
        assert _outcome(result) == {"success": False, "result": {}}

    def test_stdin_into_missing_directories_creates_none(self, tmp_path: Path) -> None:
        virtual = tmp_path / "no" / "such" / "dir" / "a.py"
        result = CliRunner().invoke(
            main,
            ["reindex", "--source", str(virtual), "--stdin"],
            input="def piped():\n    pass\n",
        )
        assert result.exit_code == 0, result.output
        assert not (tmp_path / "no").exists()
        assert (tmp_path / ".symdex" / "index.db").exists()

    def test_stream_progress(self, project: Path) -> None:
        result = CliRunner().invoke(
            main, ["reindex", "--source", str(project), "-s", "--database", ":memory:"]
        )
        assert result.exit_code == 0, result.output
        assert _outcome(result)["success"] is True


class TestReindexErrors:
    def test_missing_source(self) -> None:
        result = CliRunner().invoke(main, ["reindex"])
        assert result.exit_code == 2
        assert "required" in result.output

    def test_empty_source(self) -> None:
        result = CliRunner().invoke(main, ["reindex", "--source", ""])
        assert result.exit_code == 2

    def test_missing_path_creates_nothing(self, tmp_path: Path) -> None:
        db_path = tmp_path / "index.db"
        result = CliRunner().invoke(
            main,
            ["reindex", "--source", str(tmp_path / "missing"), "--database", str(db_path)],
        )
        assert result.exit_code == 2
        assert "does not exist" in result.output
        assert not db_path.exists()

    def test_bad_config(self, project: Path) -> None:
        (project / ".symdex").mkdir()
        (project / ".symdex" / "config.yml").write_text(yaml.dump({"exclude": 3}))
        result = CliRunner().invoke(main, ["reindex", "--source", str(project)])
        assert result.exit_code == 2
        assert "exclude" in result.output

    def test_config_excludes_files(self, project: Path) -> None:
        (project / ".symdex").mkdir()
        (project / ".symdex" / "config.yml").write_text(yaml.dump({"exclude": ["lib/*"]}))
        result = CliRunner().invoke(main, ["reindex", "--source", str(project)])
        assert result.exit_code == 0, result.output
        db = open_db(project / ".symdex" / "index.db")
        try:
            row = db.connection.execute("SELECT 1 FROM symbols WHERE name = 'helper'").fetchone()
        finally:
            db.close()
        assert row is None
