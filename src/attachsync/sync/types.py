"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, IntegrityError, DeletionError, TransientPushError,
  NotSyncedLocallyError: Exception classes
- SyncAction, SyncTask: Queue entries
- AppImage, SavedFile: Attachment records
- ReconcileOutcome: What a reconciliation did
- RunnerState, TaskResult: Batch runner state and per-task results
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

# Relative path addressing a file in the remote namespace
FileIdentity = str


class SyncError(Exception):
    """Base exception for sync errors."""


class IntegrityError(SyncError):
    """File is missing both locally and remotely.

    This is an unrecoverable inconsistency: it is surfaced to the caller
    and never retried.
    """

    def __init__(self, identity: FileIdentity) -> None:
        self.identity = identity
        super().__init__(
            f'Unexpected - The file at "{identity}" is missing both locally and remotely'
        )


class DeletionError(SyncError):
    """Local delete failed for a reason other than the file being absent."""

    def __init__(self, identity: FileIdentity, reason: str) -> None:
        self.identity = identity
        super().__init__(f"Failed to delete {identity}: {reason}")


class TransientPushError(SyncError):
    """A best-effort remote push (upload or delete) failed.

    Only ever logged. The next reconciliation pass corrects the remote copy.
    """

    def __init__(self, operation: str, identity: FileIdentity, reason: str) -> None:
        self.operation = operation
        self.identity = identity
        super().__init__(f"Remote {operation} of {identity} failed: {reason}")


class NotSyncedLocallyError(SyncError):
    """The requested file has not been synced to local storage yet."""

    def __init__(self, identity: FileIdentity) -> None:
        self.identity = identity
        super().__init__(f"This image is not yet synced locally: {identity}")


class SyncAction(Enum):
    """Action performed for a queued file."""

    SYNC = "sync"
    DELETE = "delete"


@dataclass
class AppImage:
    """An attachment belonging to an owner record (e.g. a trip).

    Attributes:
        relative_path: Identity once saved; empty for freshly picked images.
        name: File name within the owner's folder.
        uri: Known local URI, set for images that were just picked.
        extra: Any other fields carried by the owner record.
    """

    relative_path: FileIdentity = ""
    name: str = ""
    uri: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_saved(self) -> bool:
        """Check whether the image was already saved into local storage."""
        return bool(self.relative_path)


@dataclass
class SavedFile:
    """Result of saving a new file into local storage."""

    identity: FileIdentity
    name: str


@dataclass
class SyncTask:
    """A pending unit of work in the sync queue.

    Attributes:
        identity: Dedup key of the task.
        action: What to do with the file.
        payload: The attachment record the task was created from.
    """

    identity: FileIdentity
    action: SyncAction
    payload: AppImage | None = None

    @classmethod
    def for_image(cls, image: AppImage, action: SyncAction) -> SyncTask:
        """Create a task from a saved image."""
        if not image.relative_path:
            raise ValueError("Cannot queue an image without a relative path")
        return cls(identity=image.relative_path, action=action, payload=image)

    @property
    def known_local_uri(self) -> str | None:
        """Get the local URI carried by the payload, if any."""
        if self.payload is None:
            return None
        return self.payload.uri

    def __repr__(self) -> str:
        return f"SyncTask({self.action.name}, {self.identity!r})"


class ReconcileOutcome(Enum):
    """What a reconciliation pass did for one file."""

    DOWNLOADED = auto()
    UPLOADED = auto()
    IN_SYNC = auto()


class RunnerState(Enum):
    """State of the batch runner.

    IDLE: no batch in flight, draining resumes on the next run_next().
    DRAINING: exactly one batch is outstanding.
    STALLED: the last batch had a failure; no batch in flight and draining
        only resumes when run_next() is called again.
    """

    IDLE = auto()
    DRAINING = auto()
    STALLED = auto()


@dataclass
class TaskResult:
    """Result of running one queued task.

    Attributes:
        identity: Identity of the task.
        action: Action that was run.
        success: Whether the action completed without error.
        error: Error message if failed.
        elapsed_time: Time taken in seconds.
    """

    identity: FileIdentity
    action: SyncAction
    success: bool
    error: str | None = None
    elapsed_time: float = 0.0


# Type aliases for callbacks
TaskHandler = Callable[[SyncTask], Any]
TaskResultCallback = Callable[[TaskResult], None]
StateCallback = Callable[[RunnerState], None]
