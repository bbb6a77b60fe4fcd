"""Sync operations for attachment files.

Architecture:
    SyncEngine → SyncQueue → BatchRunner → Reconciler / FileManager

Components:
- **SyncQueue**: Deduplicated work set keyed by file identity
- **BatchRunner**: Drains the queue in bounded concurrent batches, one at a time
- **Reconciler**: Downloads, uploads or does nothing based on presence
- **FileManager**: Local-first save/delete with background remote pushes
- **SyncEngine**: Per-owner wiring of the above
"""

from attachsync.sync.engine import SyncEngine
from attachsync.sync.files import BackgroundPusher, FileManager
from attachsync.sync.queue import SyncQueue
from attachsync.sync.reconciler import Reconciler
from attachsync.sync.runner import BATCH_SIZE, BatchRunner
from attachsync.sync.types import (
    AppImage,
    DeletionError,
    FileIdentity,
    IntegrityError,
    NotSyncedLocallyError,
    ReconcileOutcome,
    RunnerState,
    SavedFile,
    SyncAction,
    SyncError,
    SyncTask,
    TaskResult,
    TransientPushError,
)

__all__ = [
    # Errors
    "DeletionError",
    "IntegrityError",
    "NotSyncedLocallyError",
    "SyncError",
    "TransientPushError",
    # Types
    "AppImage",
    "FileIdentity",
    "ReconcileOutcome",
    "RunnerState",
    "SavedFile",
    "SyncAction",
    "SyncTask",
    "TaskResult",
    # Components
    "BATCH_SIZE",
    "BackgroundPusher",
    "BatchRunner",
    "FileManager",
    "Reconciler",
    "SyncEngine",
    "SyncQueue",
]
