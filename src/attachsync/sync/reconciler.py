"""Per-file reconciliation between local and remote copies.

This module provides:
- Reconciler: Compares local and remote presence of one file and performs
  the minimal corrective transfer

Decision matrix (presence only, contents are never compared):

    local   remote   action
    -----   ------   ------
    no      no       IntegrityError
    no      yes      download
    yes     no       upload
    yes     yes      nothing
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from attachsync.core.paths import uri_to_path
from attachsync.storage.remote import ObjectNotFoundError
from attachsync.sync.types import IntegrityError, ReconcileOutcome

if TYPE_CHECKING:
    from attachsync.core.paths import PathResolver
    from attachsync.storage.local import LocalFileStore
    from attachsync.storage.remote import RemoteMetadata, RemoteStore
    from attachsync.sync.types import FileIdentity

logger = logging.getLogger(__name__)


class Reconciler:
    """Makes the local and remote copies of a file consistent."""

    def __init__(
        self,
        resolver: PathResolver,
        local: LocalFileStore,
        remote: RemoteStore,
        probe_workers: int = 4,
    ) -> None:
        """Initialize the reconciler.

        Args:
            resolver: Maps identities to local paths.
            local: Local filesystem access.
            remote: Remote object storage.
            probe_workers: Threads used to run remote probes alongside the
                local existence check.
        """
        self._resolver = resolver
        self._local = local
        self._remote = remote
        self._probe_executor = ThreadPoolExecutor(
            max_workers=probe_workers,
            thread_name_prefix="RemoteProbe",
        )

    def reconcile(
        self,
        identity: FileIdentity,
        known_local_uri: str | None = None,
    ) -> ReconcileOutcome:
        """Reconcile one file.

        Args:
            identity: Relative path of the file.
            known_local_uri: Local URI to use instead of the resolved path.

        Returns:
            What was done.

        Raises:
            IntegrityError: If the file exists neither locally nor remotely.
        """
        if known_local_uri:
            local_path = uri_to_path(known_local_uri)
        else:
            local_path = self._resolver.resolve(identity)

        remote_probe = self._probe_executor.submit(self._probe_remote, identity)
        available_locally = self._local.exists(local_path)
        available_remotely = remote_probe.result() is not None

        if not available_locally and not available_remotely:
            raise IntegrityError(identity)

        if not available_locally:
            logger.info('"%s" is missing locally - downloading', identity)
            self._local.ensure_dir(local_path.parent)
            self._remote.download(identity, local_path)
            return ReconcileOutcome.DOWNLOADED

        if not available_remotely:
            logger.info('"%s" is missing remotely - uploading', identity)
            self._remote.upload(local_path, identity)
            return ReconcileOutcome.UPLOADED

        logger.debug('"%s" is available locally and remotely', identity)
        return ReconcileOutcome.IN_SYNC

    def _probe_remote(self, identity: FileIdentity) -> RemoteMetadata | None:
        """Probe remote metadata, treating "not found" errors as absence."""
        try:
            return self._remote.probe(identity)
        except (ObjectNotFoundError, FileNotFoundError):
            return None

    def close(self) -> None:
        """Shut the probe thread pool down."""
        self._probe_executor.shutdown(wait=True)
