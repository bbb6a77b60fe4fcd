"""Configuration utilities for the attachsync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

import click

from attachsync.core.config import EngineConfig


def get_config_dir() -> Path:
    """Get the configuration directory for attachsync.

    Returns:
        Path to $ATTACHSYNC_CONFIG_DIR, or ~/.attachsync by default.
    """
    override = os.environ.get("ATTACHSYNC_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".attachsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def require_engine_config() -> EngineConfig:
    """Load the engine configuration or exit with an error.

    Environment variables (ATTACHSYNC_*) override the config file.
    """
    data = load_config()
    if not data.get("documents_dir") and os.environ.get("ATTACHSYNC_DOCUMENTS_DIR"):
        data["documents_dir"] = os.environ["ATTACHSYNC_DOCUMENTS_DIR"]

    try:
        return EngineConfig.from_dict(data).with_env_overrides()
    except ValueError as e:
        click.echo(f"Error: {e}. Run 'attachsync configure' first.", err=True)
        sys.exit(1)
