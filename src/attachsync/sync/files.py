"""File save/delete helpers with best-effort remote pushes.

This module provides:
- BackgroundPusher: Fire-and-forget remote operations whose failures are
  only logged
- FileManager: Local-first saving and deleting of attachment files

Local durability is the success criterion of every write here. Remote
uploads and deletes are submitted to the pusher and never awaited; if one
fails, the next reconciliation pass fixes the remote copy.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from attachsync.core.paths import join_identity, name_from_uri, uri_to_path
from attachsync.sync.types import (
    AppImage,
    DeletionError,
    NotSyncedLocallyError,
    SavedFile,
    TransientPushError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from attachsync.core.paths import PathResolver
    from attachsync.storage.local import LocalFileStore
    from attachsync.storage.remote import RemoteStore
    from attachsync.sync.types import FileIdentity

logger = logging.getLogger(__name__)


class BackgroundPusher:
    """Runs remote operations in the background without reporting errors.

    Failures are wrapped in TransientPushError and logged at WARNING level.
    Callers never wait on a push; ``flush`` exists for shutdown and tests.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="RemotePush",
        )
        self._lock = threading.Lock()
        self._pending: set[Future[Any]] = set()
        self._failure_count = 0

    @property
    def failure_count(self) -> int:
        """Get number of pushes that failed."""
        with self._lock:
            return self._failure_count

    @property
    def pending_count(self) -> int:
        """Get number of pushes not finished yet."""
        with self._lock:
            return len(self._pending)

    def submit(
        self,
        operation: str,
        identity: FileIdentity,
        func: Callable[..., Any],
        *args: Any,
    ) -> Future[Any]:
        """Start a remote operation and return without waiting for it.

        Args:
            operation: Short name used in logs ("upload", "delete").
            identity: File the operation is about.
            func: The remote call.
            *args: Arguments for func.
        """
        future = self._executor.submit(func, *args)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(
            lambda f: self._on_done(f, operation, identity)
        )
        return future

    def _on_done(self, future: Future[Any], operation: str, identity: FileIdentity) -> None:
        error = future.exception()
        with self._lock:
            self._pending.discard(future)
            if error is not None:
                self._failure_count += 1
        if error is None:
            logger.debug("Remote %s of %s done", operation, identity)
            return
        logger.warning("%s", TransientPushError(operation, identity, str(error)))

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for pushes started so far.

        Returns:
            True if all finished, False if the timeout expired.
        """
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self, wait: bool = True) -> None:
        """Shut the push thread pool down."""
        self._executor.shutdown(wait=wait)


class FileManager:
    """Saves and deletes attachment files locally, pushing to remote in the background."""

    def __init__(
        self,
        resolver: PathResolver,
        local: LocalFileStore,
        remote: RemoteStore,
        pusher: BackgroundPusher | None = None,
    ) -> None:
        self._resolver = resolver
        self._local = local
        self._remote = remote
        self._pusher = pusher or BackgroundPusher()

    @property
    def pusher(self) -> BackgroundPusher:
        """Get the pusher used for remote operations."""
        return self._pusher

    def save_new_file(self, local_uri: str, prefix: str) -> SavedFile:
        """Move a freshly picked file into local storage and push it to remote.

        The remote upload is not waited for and its failure is only logged.
        A source already at its destination is left in place and only pushed.

        Args:
            local_uri: Where the file currently is (path or file:// URI).
            prefix: Identity prefix of the folder to save into.

        Returns:
            The identity and name the file was saved under.
        """
        name = name_from_uri(local_uri)
        identity = join_identity(prefix, name)
        local_dir = self._resolver.resolve(prefix)
        destination = self._resolver.resolve(identity)
        source = uri_to_path(local_uri)

        self._local.ensure_dir(local_dir)
        if source.resolve() != destination.resolve():
            self.try_remove_file(destination)
            self._local.move(source, destination)
        logger.info("Saved %s locally", identity)

        self._pusher.submit("upload", identity, self._remote.upload, destination, identity)

        return SavedFile(identity=identity, name=name)

    def delete_file(self, identity: FileIdentity) -> bool:
        """Delete a file locally and request its remote deletion.

        Returns:
            True if a local copy was removed.

        Raises:
            DeletionError: If the local delete failed for a reason other
                than the file being absent.
        """
        logger.info("Deleting %s", identity)
        local_path = self._resolver.resolve(identity)
        try:
            removed = self.try_remove_file(local_path)
        except OSError as e:
            raise DeletionError(identity, str(e)) from e

        self._pusher.submit("delete", identity, self._remote.delete, identity)
        return removed

    def try_remove_file(self, path: Path) -> bool:
        """Remove the file if it exists.

        Returns:
            True when a file was removed.
        """
        return self._local.delete(path)

    def resolve_local_photo(self, relative_path: FileIdentity) -> Path:
        """Get the local path of a file if it is available locally.

        Raises:
            NotSyncedLocallyError: If the file isn't synced locally yet.
        """
        local_path = self._resolver.resolve(relative_path)
        if self._local.exists(local_path):
            return local_path
        raise NotSyncedLocallyError(relative_path)

    def save_images(self, images: Iterable[AppImage], prefix: str) -> list[AppImage]:
        """Save newly added images; already saved ones are returned as-is.

        Saved images no longer carry their picking URI.
        """
        result = []
        for image in images:
            if image.is_saved:
                result.append(image)
                continue
            if not image.uri:
                raise ValueError("Cannot save an image without a URI")
            saved = self.save_new_file(image.uri, prefix)
            result.append(
                replace(image, relative_path=saved.identity, name=saved.name, uri=None)
            )
        return result

    def delete_images(self, images: Iterable[AppImage]) -> None:
        """Delete the local (and, best effort, remote) copies of images."""
        for image in images:
            if image.is_saved:
                self.delete_file(image.relative_path)

    def update_images(
        self,
        next_images: Iterable[AppImage],
        prev_images: Iterable[AppImage] = (),
        prefix: str = "",
    ) -> list[AppImage]:
        """Apply an image list change.

        Images of prev_images missing from next_images (by relative path)
        are deleted, then new images of next_images are saved.

        Returns:
            The next image list with every image saved.
        """
        next_images = list(next_images)
        kept = {image.relative_path for image in next_images if image.is_saved}
        deleted = [
            image for image in prev_images
            if image.is_saved and image.relative_path not in kept
        ]
        self.delete_images(deleted)
        return self.save_images(next_images, prefix)
