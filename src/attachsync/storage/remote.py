"""Remote object storage for synced files.

This module provides:
- Abstract interface for remote object storage addressed by identity
- LocalFSRemoteStore for development/testing
- S3RemoteStore for production (AWS, MinIO, OVH, ...)
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

# S3 error codes meaning "there is no such object"
NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class ObjectNotFoundError(Exception):
    """Raised when an object is not found in remote storage."""


@dataclass
class RemoteMetadata:
    """Metadata returned by a positive remote probe.

    Attributes:
        path: Identity of the object.
        size: Object size in bytes.
        updated: Last modification time, if the store reports one.
        etag: Store-specific content tag, if any.
    """

    path: str
    size: int
    updated: datetime | None = None
    etag: str | None = None


class RemoteStore(ABC):
    """Abstract interface for remote object storage."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of where objects are stored."""

    @abstractmethod
    def probe(self, identity: str) -> RemoteMetadata | None:
        """Get object metadata.

        Args:
            identity: Relative path of the object.

        Returns:
            Metadata, or None if the object does not exist. Transport
            errors are raised, never reported as absence.
        """

    @abstractmethod
    def upload(self, local_path: Path, identity: str) -> None:
        """Upload a local file to the object at identity (overwrites)."""

    @abstractmethod
    def download(self, identity: str, local_path: Path) -> None:
        """Download the object at identity to local_path (overwrites).

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
        """

    @abstractmethod
    def delete(self, identity: str) -> bool:
        """Delete an object.

        Returns:
            True if the object was deleted, False if it didn't exist.
        """

    @abstractmethod
    def download_url(self, identity: str, expires_in: int = 3600) -> str:
        """Get a URL from which the object can be fetched."""


class LocalFSRemoteStore(RemoteStore):
    """A local directory standing in for remote storage.

    Used for development and testing; objects are plain files laid out
    under the base path by identity.
    """

    def __init__(self, base_path: Path | str) -> None:
        """Initialize local remote storage.

        Args:
            base_path: Base directory for stored objects.
        """
        self._base_path = Path(base_path).resolve()
        self._base_path.mkdir(parents=True, exist_ok=True)

    @property
    def location(self) -> str:
        """Return the local storage path."""
        return f"Local filesystem: {self._base_path}"

    def _object_path(self, identity: str) -> Path:
        """Get the file path for an object."""
        relative = PurePosixPath(identity.lstrip("/"))
        if ".." in relative.parts:
            raise ValueError(f"Invalid identity: {identity}")
        return self._base_path / relative

    def probe(self, identity: str) -> RemoteMetadata | None:
        """Get object metadata from the file's stat."""
        path = self._object_path(identity)
        if not path.is_file():
            return None
        stat = path.stat()
        return RemoteMetadata(
            path=identity,
            size=stat.st_size,
            updated=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def upload(self, local_path: Path, identity: str) -> None:
        """Copy the local file into the store."""
        path = self._object_path(identity)
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(local_path, path)

    def download(self, identity: str, local_path: Path) -> None:
        """Copy the stored object to local_path."""
        path = self._object_path(identity)
        if not path.is_file():
            raise ObjectNotFoundError(f"Object not found: {identity}")
        local_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, local_path)

    def delete(self, identity: str) -> bool:
        """Delete an object."""
        path = self._object_path(identity)
        if path.is_file():
            path.unlink()
            return True
        return False

    def download_url(self, identity: str, expires_in: int = 3600) -> str:
        """Return a file:// URL (local files never expire)."""
        path = self._object_path(identity)
        if not path.is_file():
            raise ObjectNotFoundError(f"Object not found: {identity}")
        return path.as_uri()


class S3RemoteStore(RemoteStore):
    """S3-compatible storage for production (AWS, OVH, MinIO, etc.)."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
        key_prefix: str = "",
    ) -> None:
        """Initialize S3 storage.

        Args:
            bucket: S3 bucket name.
            endpoint_url: Custom endpoint URL (for OVH, MinIO, etc.).
            access_key: AWS access key ID.
            secret_key: AWS secret access key.
            region: AWS region (default: us-east-1).
            key_prefix: Prefix prepended to every object key.
        """
        import boto3

        self._bucket = bucket
        self._endpoint_url = endpoint_url
        self._key_prefix = key_prefix.strip("/")
        self._client: Any = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    @property
    def location(self) -> str:
        """Return the S3 bucket location."""
        if self._endpoint_url:
            return f"S3: {self._endpoint_url}/{self._bucket}"
        return f"S3: s3://{self._bucket}"

    def _key(self, identity: str) -> str:
        """Get the S3 key for an identity."""
        identity = identity.lstrip("/")
        if self._key_prefix:
            return f"{self._key_prefix}/{identity}"
        return identity

    def probe(self, identity: str) -> RemoteMetadata | None:
        """Get object metadata with a HEAD request."""
        from botocore.exceptions import ClientError

        try:
            response = self._client.head_object(
                Bucket=self._bucket,
                Key=self._key(identity),
            )
        except ClientError as e:
            if e.response["Error"]["Code"] in NOT_FOUND_CODES:
                return None
            raise

        etag = response.get("ETag")
        return RemoteMetadata(
            path=identity,
            size=int(response.get("ContentLength", 0)),
            updated=response.get("LastModified"),
            etag=etag.strip('"') if etag else None,
        )

    def upload(self, local_path: Path, identity: str) -> None:
        """Upload a local file."""
        self._client.upload_file(str(local_path), self._bucket, self._key(identity))

    def download(self, identity: str, local_path: Path) -> None:
        """Download an object to a local file."""
        from botocore.exceptions import ClientError

        local_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._client.download_file(self._bucket, self._key(identity), str(local_path))
        except ClientError as e:
            if e.response["Error"]["Code"] in NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"Object not found: {identity}") from e
            raise

    def delete(self, identity: str) -> bool:
        """Delete an object."""
        if self.probe(identity) is None:
            return False
        self._client.delete_object(
            Bucket=self._bucket,
            Key=self._key(identity),
        )
        return True

    def download_url(self, identity: str, expires_in: int = 3600) -> str:
        """Get a presigned GET URL for an object."""
        url: str = self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self._bucket, "Key": self._key(identity)},
            ExpiresIn=expires_in,
        )
        return url


def create_remote_store(config: dict[str, str | None]) -> RemoteStore:
    """Factory function to create a remote store from configuration.

    Args:
        config: Storage configuration dict with keys:
            - type: "local" or "s3"
            - For local: local_path
            - For S3: bucket, endpoint_url, access_key, secret_key, region,
              key_prefix

    Returns:
        Configured RemoteStore instance.

    Raises:
        ValueError: If storage type is unknown.
    """
    storage_type = config.get("type") or "local"

    if storage_type == "local":
        local_path = config.get("local_path") or "./remote"
        return LocalFSRemoteStore(local_path)

    if storage_type == "s3":
        bucket = config.get("bucket")
        if not bucket:
            raise ValueError("S3 storage requires 'bucket' configuration")
        return S3RemoteStore(
            bucket=bucket,
            endpoint_url=config.get("endpoint_url"),
            access_key=config.get("access_key"),
            secret_key=config.get("secret_key"),
            region=config.get("region") or "us-east-1",
            key_prefix=config.get("key_prefix") or "",
        )

    raise ValueError(f"Unknown storage type: {storage_type}")
