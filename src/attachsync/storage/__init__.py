"""Local and remote storage backends.

This package provides:
- LocalFileStore: device filesystem access
- RemoteStore: abstract remote object storage
- LocalFSRemoteStore / S3RemoteStore: remote implementations
- create_remote_store: factory from a config dict
"""

from attachsync.storage.local import LocalFileStore
from attachsync.storage.remote import (
    LocalFSRemoteStore,
    ObjectNotFoundError,
    RemoteMetadata,
    RemoteStore,
    S3RemoteStore,
    create_remote_store,
)

__all__ = [
    "LocalFileStore",
    "LocalFSRemoteStore",
    "ObjectNotFoundError",
    "RemoteMetadata",
    "RemoteStore",
    "S3RemoteStore",
    "create_remote_store",
]
