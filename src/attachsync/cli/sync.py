"""Sync and delete commands for the attachsync CLI.

Commands:
- sync: Reconcile files between local and remote storage
- delete: Delete files locally and remotely
"""

from __future__ import annotations

import sys
from pathlib import PurePosixPath

import click

from attachsync.cli.config import require_engine_config


def _run_tasks(action: str, identities: tuple[str, ...], owner: str, keep_going: bool) -> None:
    """Queue one task per identity, drain the queue and report results.

    Identities are taken relative to the owner prefix when one is given.
    """
    from attachsync.core.paths import join_identity
    from attachsync.sync import AppImage, RunnerState, SyncEngine, TaskResult

    config = require_engine_config()
    results: list[TaskResult] = []
    images = [
        AppImage(
            relative_path=join_identity(owner, identity),
            name=PurePosixPath(identity).name,
        )
        for identity in identities
    ]

    with SyncEngine.from_config(config, owner=owner) as engine:
        engine.runner.add_result_listener(results.append)

        if action == "delete":
            engine.delete_files(images)
        else:
            engine.try_sync_files(images)

        engine.wait_until_settled()
        while keep_going and engine.runner.state is RunnerState.STALLED and engine.queue:
            click.echo(f"Batch had failures, resuming with {len(engine.queue)} files left")
            engine.run_next()
            engine.wait_until_settled()

        engine.flush_pushes()
        left = len(engine.queue)

    failed = [r for r in results if not r.success]
    for result in results:
        if result.success:
            click.echo(f"  ✓ {result.identity}")
        else:
            click.echo(f"  ✗ {result.identity}: {result.error}")

    click.echo(
        f"{len(results) - len(failed)} succeeded, {len(failed)} failed, {left} not processed"
    )
    if failed or left:
        sys.exit(1)


@click.command()
@click.argument("identities", nargs=-1, required=True)
@click.option("--owner", default="", help="Owner record prefix the identities are relative to.")
@click.option(
    "--keep-going",
    is_flag=True,
    help="Resume draining after a batch with failures.",
)
def sync(identities: tuple[str, ...], owner: str, keep_going: bool) -> None:
    """Reconcile files between local and remote storage.

    Missing local copies are downloaded, missing remote copies are uploaded.
    """
    _run_tasks("sync", identities, owner, keep_going)


@click.command()
@click.argument("identities", nargs=-1, required=True)
@click.option("--owner", default="", help="Owner record prefix the identities are relative to.")
@click.option(
    "--keep-going",
    is_flag=True,
    help="Resume draining after a batch with failures.",
)
def delete(identities: tuple[str, ...], owner: str, keep_going: bool) -> None:
    """Delete files locally and (best effort) remotely."""
    _run_tasks("delete", identities, owner, keep_going)
