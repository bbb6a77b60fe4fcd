"""Per-owner sync engine.

This module provides:
- SyncEngine: Wires the queue, batch runner, reconciler and file helpers
  for one logical owner (e.g. a trip's image list)

Each engine owns its own queue and runner, so owners never block each other.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from attachsync.core.paths import PathResolver
from attachsync.storage.local import LocalFileStore
from attachsync.storage.remote import create_remote_store
from attachsync.sync.files import BackgroundPusher, FileManager
from attachsync.sync.queue import SyncQueue
from attachsync.sync.reconciler import Reconciler
from attachsync.sync.runner import BATCH_SIZE, BatchRunner
from attachsync.sync.types import AppImage, SyncAction, SyncTask

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from attachsync.core.config import EngineConfig
    from attachsync.storage.remote import RemoteStore
    from attachsync.sync.types import FileIdentity

logger = logging.getLogger(__name__)


class SyncEngine:
    """Keeps the files of one owner consistent between local and remote storage.

    Usage:
        engine = SyncEngine.from_config(config, owner="trips/42")
        images = engine.update_images(new_list, old_list)
        engine.try_sync_files(images)
        engine.wait_until_settled()
        engine.close()
    """

    def __init__(
        self,
        documents_dir: Path | str,
        remote: RemoteStore,
        owner: str = "",
        batch_size: int = BATCH_SIZE,
        push_workers: int = 4,
        local: LocalFileStore | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            documents_dir: Local directory holding synced files.
            remote: Remote object storage.
            owner: Identity prefix new files of this owner are saved under.
            batch_size: Maximum number of tasks per batch.
            push_workers: Threads for fire-and-forget remote pushes.
            local: Local filesystem access (default: LocalFileStore()).
        """
        self._owner = owner.strip("/")
        self._resolver = PathResolver(documents_dir)
        self._local = local or LocalFileStore()
        self._remote = remote

        self.queue = SyncQueue()
        self.reconciler = Reconciler(self._resolver, self._local, remote)
        self.files = FileManager(
            self._resolver,
            self._local,
            remote,
            pusher=BackgroundPusher(max_workers=push_workers),
        )
        self.runner = BatchRunner(self.queue, self._dispatch, batch_size=batch_size)

    @classmethod
    def from_config(cls, config: EngineConfig, owner: str = "") -> SyncEngine:
        """Create an engine from configuration."""
        remote = create_remote_store(config.storage_config())
        logger.debug("Using remote store %s", remote.location)
        return cls(
            documents_dir=config.documents_dir,
            remote=remote,
            owner=owner,
            batch_size=config.batch_size,
            push_workers=config.push_workers,
        )

    @property
    def owner(self) -> str:
        """Get the identity prefix of this engine's owner."""
        return self._owner

    @property
    def resolver(self) -> PathResolver:
        """Get the identity to local path resolver."""
        return self._resolver

    @property
    def remote(self) -> RemoteStore:
        """Get the remote store."""
        return self._remote

    def _dispatch(self, task: SyncTask) -> None:
        """Run the action of a queued task."""
        if task.action is SyncAction.SYNC:
            self.reconciler.reconcile(task.identity, task.known_local_uri)
        elif task.action is SyncAction.DELETE:
            self.files.delete_file(task.identity)
        else:
            raise ValueError(f"Unknown action: {task.action}")

    def _queue_images(self, images: Iterable[AppImage], action: SyncAction) -> int:
        if self.runner.closed:
            raise RuntimeError("Engine is closed")
        tasks = [SyncTask.for_image(image, action) for image in images if image.is_saved]
        added = self.queue.enqueue_many(tasks)
        logger.info(
            "Queued %d of %d %s tasks for %s",
            added,
            len(tasks),
            action.value,
            self._owner or "<root>",
        )
        self.runner.run_next()
        return added

    def try_sync_files(self, images: Iterable[AppImage]) -> int:
        """Queue reconciliation of the given images and start draining.

        Returns:
            Number of tasks added (already pending identities are coalesced).

        Raises:
            RuntimeError: If the engine is closed.
        """
        return self._queue_images(images, SyncAction.SYNC)

    def delete_files(self, images: Iterable[AppImage]) -> int:
        """Queue deletion of the given images and start draining.

        Returns:
            Number of tasks added.
        """
        return self._queue_images(images, SyncAction.DELETE)

    def run_next(self) -> bool:
        """Resume draining (needed after a batch with failures)."""
        return self.runner.run_next()

    def update_images(
        self,
        next_images: Iterable[AppImage],
        prev_images: Iterable[AppImage] = (),
    ) -> list[AppImage]:
        """Delete removed images and save new ones under the owner prefix."""
        return self.files.update_images(next_images, prev_images, prefix=self._owner)

    def delete_images(self, images: Iterable[AppImage]) -> None:
        """Delete images right away (local first, remote best effort)."""
        self.files.delete_images(images)

    def resolve_local_photo(self, relative_path: FileIdentity) -> Path:
        """Get the local path of an image that is synced locally."""
        return self.files.resolve_local_photo(relative_path)

    def add_remote_urls(
        self,
        images: Iterable[AppImage],
        expires_in: int = 3600,
    ) -> dict[FileIdentity, str]:
        """Get remote download URLs for saved images.

        Returns:
            Mapping of identity to URL.
        """
        return {
            image.relative_path: self._remote.download_url(image.relative_path, expires_in)
            for image in images
            if image.is_saved
        }

    def wait_until_settled(self, timeout: float | None = None) -> bool:
        """Block until no batch is in flight."""
        return self.runner.wait_until_settled(timeout)

    def flush_pushes(self, timeout: float | None = None) -> bool:
        """Wait for background remote pushes started so far."""
        return self.files.pusher.flush(timeout)

    def close(self) -> None:
        """Wait for running work and release all thread pools."""
        self.runner.close()
        self.files.pusher.close()
        self.reconciler.close()

    def __enter__(self) -> SyncEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
