"""Core configuration and path handling shared by storage and sync code."""

from attachsync.core.config import DEFAULT_BATCH_SIZE, EngineConfig
from attachsync.core.paths import PathResolver, join_identity, name_from_uri, uri_to_path

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "EngineConfig",
    "PathResolver",
    "join_identity",
    "name_from_uri",
    "uri_to_path",
]
