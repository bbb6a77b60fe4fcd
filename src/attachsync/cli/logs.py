"""Logging setup for the attachsync CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, log_path: Path | None = None) -> None:
    """Configure the attachsync logger to output to stderr and optionally a file.

    Args:
        verbose: Log at DEBUG instead of WARNING on stderr.
        log_path: Optional log file, which always receives INFO and above.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    package_logger = logging.getLogger("attachsync")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.addHandler(stream_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        package_logger.addHandler(file_handler)
