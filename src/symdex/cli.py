"""symdex CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from symdex import __version__


@click.group()
@click.version_option(version=__version__, prog_name="symdex")
@click.pass_context
def main(ctx: click.Context) -> None:
    """symdex - source-code symbol index."""
    ctx.ensure_object(dict)


@main.command()
@click.option("--source", default=None, help="The file or directory to index.")
@click.option(
    "--stdin",
    "use_stdin",
    is_flag=True,
    default=False,
    help="Read the file contents from STDIN instead of from disk.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Verbose output.")
@click.option(
    "--stream-progress",
    "-s",
    is_flag=True,
    default=False,
    help="Stream progress percentages to stderr. Incompatible with verbose mode.",
)
@click.option(
    "--database",
    default=None,
    help="Index database (default: .symdex/index.db in the project root; ':memory:' for none).",
)
def reindex(
    *,
    source: str | None,
    use_stdin: bool,
    verbose: bool,
    stream_progress: bool,
    database: str | None,
) -> None:
    """Reindex a file or folder.

    Prints ``{"success": ..., "result": {}}``.  Exit codes: 0 = indexed,
    1 = the file could not be indexed, 2 = invalid input or configuration.
    """
    from symdex.errors import ConfigError, InvalidInputError, InvalidPathError
    from symdex.infrastructure.config import default_db_path, find_config_root, load_config
    from symdex.infrastructure.db import open_db
    from symdex.infrastructure.reindex import Reindexer, route_path

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if not source:
            msg = "The file or directory to index is required for this command."
            raise InvalidInputError(msg)
        # Fail before creating a database for a path that can't be indexed.
        route_path(source, use_stream=use_stdin)
        root = find_config_root(Path(source))
        config = load_config(root)
    except (InvalidInputError, InvalidPathError, ConfigError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    db = open_db(database or default_db_path(root), busy_timeout=config.busy_timeout)
    try:
        reindexer = Reindexer.create(db, config, stdin=sys.stdin.buffer)
        outcome = reindexer.reindex_path(
            source,
            use_stream=use_stdin,
            verbose=verbose,
            stream_progress=stream_progress,
        )
    finally:
        db.close()

    click.echo(outcome.to_json())
    if not outcome.success:
        sys.exit(1)
