"""Configure command for the attachsync CLI.

Commands:
- configure: Write or update the CLI configuration file
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from attachsync.cli.config import get_config_file, load_config, save_config
from attachsync.core.config import EngineConfig


@click.command()
@click.option(
    "--documents-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Local directory holding synced files.",
)
@click.option("--remote-type", type=click.Choice(["local", "s3"]), help="Remote storage type.")
@click.option("--remote-path", help="Directory used as remote storage (local type).")
@click.option("--bucket", help="S3 bucket name.")
@click.option("--endpoint-url", help="Custom S3 endpoint URL.")
@click.option("--region", help="S3 region.")
@click.option("--key-prefix", help="Prefix prepended to every S3 key.")
@click.option("--batch-size", type=int, help="Files processed concurrently per batch.")
def configure(**options: object) -> None:
    """Write or update the configuration file.

    Only the given options are changed; others keep their current value.
    """
    config = load_config()
    for key, value in options.items():
        if value is None:
            continue
        config[key] = str(value.expanduser().resolve()) if isinstance(value, Path) else value

    try:
        EngineConfig.from_dict(config)
    except (TypeError, ValueError) as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(1)

    save_config(config)
    click.echo(f"Configuration saved to {get_config_file()}")
