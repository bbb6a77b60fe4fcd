"""File commands for the attachsync CLI.

Commands:
- save: Move a new file into local storage and push it to remote
- resolve: Print the local path of a synced file
"""

from __future__ import annotations

import sys

import click

from attachsync.cli.config import require_engine_config


@click.command()
@click.argument("source")
@click.option("--prefix", default="", help="Identity prefix to save the file under.")
def save(source: str, prefix: str) -> None:
    """Save SOURCE into local storage and push it to remote.

    The source file is moved, not copied. A failed remote push is only
    reported as a warning; the next sync uploads the file.
    """
    from attachsync.sync import SyncEngine

    config = require_engine_config()
    with SyncEngine.from_config(config) as engine:
        try:
            saved = engine.files.save_new_file(source, prefix)
        except OSError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        engine.flush_pushes()
        if engine.files.pusher.failure_count:
            click.echo("Warning: remote push failed, run 'attachsync sync' later.", err=True)

    click.echo(saved.identity)


@click.command()
@click.argument("identity")
def resolve(identity: str) -> None:
    """Print the local path of IDENTITY if it is synced locally."""
    from attachsync.sync import NotSyncedLocallyError, SyncEngine

    config = require_engine_config()
    with SyncEngine.from_config(config) as engine:
        try:
            path = engine.resolve_local_photo(identity)
        except NotSyncedLocallyError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    click.echo(str(path))
