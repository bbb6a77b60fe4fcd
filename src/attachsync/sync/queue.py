"""Deduplicated work set for sync coordination.

This module provides:
- SyncQueue: Thread-safe mapping from file identity to pending task

Unlike a replacing queue, the first task queued for an identity wins:
a second enqueue for an identity that is still pending is a no-op. An
entry is only removed once its own action settles, so the same identity
is never dispatched twice at the same time.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from attachsync.sync.types import FileIdentity, SyncAction, SyncTask

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


class SyncQueue:
    """Thread-safe work set with identity-based coalescing.

    Tasks are kept in insertion order, which is the order batches are
    taken in. Size is unbounded.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tasks: dict[FileIdentity, SyncTask] = {}

    def enqueue(self, task: SyncTask) -> bool:
        """Add a task unless one is already pending for its identity.

        Args:
            task: The task to add.

        Returns:
            True if the task was added, False if it was coalesced into
            the pending one.
        """
        with self._lock:
            pending = self._tasks.get(task.identity)
            if pending is not None:
                logger.debug(
                    "Coalesced %s into pending %s",
                    task,
                    pending,
                )
                return False

            self._tasks[task.identity] = task
            logger.debug("Queued task: %s (queue size: %d)", task, len(self._tasks))
            return True

    def enqueue_many(self, tasks: list[SyncTask]) -> int:
        """Add several tasks.

        Returns:
            Number of tasks actually added.
        """
        with self._lock:
            return sum(1 for task in tasks if self.enqueue(task))

    def dequeue(self, identity: FileIdentity) -> SyncTask | None:
        """Remove the task for an identity.

        Args:
            identity: The identity to remove.

        Returns:
            The removed task, or None if nothing was pending.
        """
        with self._lock:
            task = self._tasks.pop(identity, None)
            if task:
                logger.debug("Removed task: %s (queue size: %d)", task, len(self._tasks))
            return task

    def peek_batch(self, max_size: int) -> list[SyncTask]:
        """Get up to max_size pending tasks without removing them."""
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        with self._lock:
            batch = []
            for task in self._tasks.values():
                if len(batch) >= max_size:
                    break
                batch.append(task)
            return batch

    def is_empty(self) -> bool:
        """Check if no tasks are pending."""
        with self._lock:
            return not self._tasks

    def has(self, identity: FileIdentity) -> bool:
        """Check if a task is pending for an identity."""
        with self._lock:
            return identity in self._tasks

    def get(self, identity: FileIdentity) -> SyncTask | None:
        """Get the pending task for an identity without removing it."""
        with self._lock:
            return self._tasks.get(identity)

    def clear(self) -> int:
        """Remove all tasks.

        Returns:
            Number of tasks removed
        """
        with self._lock:
            count = len(self._tasks)
            self._tasks.clear()
            logger.info("Cleared %d tasks from queue", count)
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __bool__(self) -> bool:
        with self._lock:
            return bool(self._tasks)

    def __iter__(self) -> Iterator[SyncTask]:
        """Iterate over a snapshot of pending tasks (does not remove them)."""
        with self._lock:
            return iter(list(self._tasks.values()))

    def stats(self) -> dict[str, int]:
        """Get queue statistics.

        Returns:
            Dictionary with task counts by action
        """
        with self._lock:
            stats = {"total": len(self._tasks)}
            for action in SyncAction:
                stats[action.value] = 0
            for task in self._tasks.values():
                stats[task.action.value] += 1
            return stats
