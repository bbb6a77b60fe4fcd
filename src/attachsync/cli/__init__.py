"""Command-line interface for attachsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Write or update the configuration file
- sync: Reconcile files between local and remote storage
- delete: Delete files locally and remotely
- save: Save a new file locally and push it to remote
- resolve: Print the local path of a synced file
"""

from __future__ import annotations

from pathlib import Path

import click

from attachsync.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    require_engine_config,
    save_config,
)
from attachsync.cli.configure import configure
from attachsync.cli.files import resolve, save
from attachsync.cli.logs import setup_logging
from attachsync.cli.sync import delete, sync


@click.group()
@click.version_option(package_name="attachsync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write logs to this file.",
)
def cli(verbose: bool, log_file: Path | None) -> None:
    """attachsync - keep attachments in sync between device and remote storage."""
    setup_logging(verbose=verbose, log_path=log_file)


# Setup
cli.add_command(configure)

# Sync commands
cli.add_command(sync)
cli.add_command(delete)

# File commands
cli.add_command(save)
cli.add_command(resolve)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "require_engine_config",
    "save_config",
]
