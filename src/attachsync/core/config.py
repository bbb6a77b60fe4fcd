"""Shared configuration classes for attachsync.

This module defines the engine configuration used by the CLI and by
``SyncEngine.from_config``.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

DEFAULT_BATCH_SIZE = 15
DEFAULT_PUSH_WORKERS = 4

# Environment variable -> EngineConfig field
ENV_OVERRIDES = {
    "ATTACHSYNC_DOCUMENTS_DIR": "documents_dir",
    "ATTACHSYNC_REMOTE_TYPE": "remote_type",
    "ATTACHSYNC_REMOTE_PATH": "remote_path",
    "ATTACHSYNC_S3_BUCKET": "bucket",
    "ATTACHSYNC_S3_ENDPOINT": "endpoint_url",
    "ATTACHSYNC_S3_ACCESS_KEY": "access_key",
    "ATTACHSYNC_S3_SECRET_KEY": "secret_key",
    "ATTACHSYNC_S3_REGION": "region",
    "ATTACHSYNC_S3_PREFIX": "key_prefix",
    "ATTACHSYNC_BATCH_SIZE": "batch_size",
}


@dataclass
class EngineConfig:
    """Configuration for a sync engine.

    Attributes:
        documents_dir: Local directory that holds the synced files.
        remote_type: "local" (directory acting as remote) or "s3".
        remote_path: Base directory for the "local" remote type.
        bucket: S3 bucket name.
        endpoint_url: Custom S3 endpoint (MinIO, OVH, ...).
        access_key: S3 access key ID.
        secret_key: S3 secret access key.
        region: S3 region.
        key_prefix: Optional prefix prepended to every S3 key.
        batch_size: Maximum number of tasks run concurrently per batch.
        push_workers: Threads used for fire-and-forget remote pushes.
    """

    documents_dir: Path
    remote_type: str = "local"
    remote_path: str | None = None
    bucket: str | None = None
    endpoint_url: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    region: str = "us-east-1"
    key_prefix: str = ""
    batch_size: int = DEFAULT_BATCH_SIZE
    push_workers: int = DEFAULT_PUSH_WORKERS

    def __post_init__(self) -> None:
        """Normalize paths and validate sizes."""
        self.documents_dir = Path(self.documents_dir).expanduser()
        self.batch_size = int(self.batch_size)
        self.push_workers = int(self.push_workers)
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.push_workers < 1:
            raise ValueError(f"push_workers must be positive, got {self.push_workers}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        """Build a config from a (JSON) dict, ignoring unknown keys."""
        if not data.get("documents_dir"):
            raise ValueError("Configuration requires 'documents_dir'")
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        data = asdict(self)
        data["documents_dir"] = str(self.documents_dir)
        return data

    def with_env_overrides(self, environ: dict[str, str] | None = None) -> EngineConfig:
        """Return a copy with ``ATTACHSYNC_*`` environment variables applied."""
        env = os.environ if environ is None else environ
        changes: dict[str, Any] = {}
        for var, field_name in ENV_OVERRIDES.items():
            value = env.get(var)
            if value:
                changes[field_name] = value
        if not changes:
            return self
        return replace(self, **changes)

    def storage_config(self) -> dict[str, str | None]:
        """Get the dict consumed by ``create_remote_store``."""
        if self.remote_type == "s3":
            return {
                "type": "s3",
                "bucket": self.bucket,
                "endpoint_url": self.endpoint_url,
                "access_key": self.access_key,
                "secret_key": self.secret_key,
                "region": self.region,
                "key_prefix": self.key_prefix,
            }
        return {
            "type": self.remote_type,
            "local_path": self.remote_path,
        }
