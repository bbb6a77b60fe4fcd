"""Batch runner draining the sync queue.

This module provides:
- BatchRunner: Runs queued tasks in bounded, concurrent batches with at
  most one batch in flight
- BATCH_SIZE: Default number of tasks per batch

State machine:
    IDLE --run_next()--> DRAINING
    DRAINING --all tasks succeeded, queue empty--> IDLE
    DRAINING --all tasks succeeded, queue not empty--> IDLE --> DRAINING
    DRAINING --any task failed--> STALLED
    STALLED --run_next()--> DRAINING

A batch with a failed task does not start the next batch by itself: the
remaining tasks wait for an explicit run_next() call.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from attachsync.core.config import DEFAULT_BATCH_SIZE
from attachsync.sync.types import RunnerState, SyncTask, TaskResult

if TYPE_CHECKING:
    from attachsync.sync.queue import SyncQueue
    from attachsync.sync.types import StateCallback, TaskHandler, TaskResultCallback

logger = logging.getLogger(__name__)

BATCH_SIZE = DEFAULT_BATCH_SIZE


class BatchRunner:
    """Drains a SyncQueue in bounded batches.

    Every task of a batch is submitted to a thread pool at once. Each task
    removes its own queue entry when it settles, whatever its outcome and
    whatever its siblings do. The batch settles when its last task settles.

    Usage:
        runner = BatchRunner(queue, handler)
        queue.enqueue(task)
        runner.run_next()
        runner.wait_until_settled()
        runner.close()
    """

    def __init__(
        self,
        queue: SyncQueue,
        handler: TaskHandler,
        batch_size: int = BATCH_SIZE,
    ) -> None:
        """Initialize the runner.

        Args:
            queue: Work set to drain.
            handler: Callable run once per task; raising marks the task failed.
            batch_size: Maximum number of tasks per batch.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self._queue = queue
        self._handler = handler
        self._batch_size = batch_size
        self._executor = ThreadPoolExecutor(
            max_workers=batch_size,
            thread_name_prefix="BatchRunner",
        )

        self._lock = threading.RLock()
        self._settled = threading.Condition(self._lock)
        self._state = RunnerState.IDLE
        self._closed = False

        # Current batch
        self._pending = 0
        self._batch_failed = False

        # Statistics
        self._batch_count = 0
        self._completed_count = 0
        self._error_count = 0

        self._state_listeners: list[StateCallback] = []
        self._result_listeners: list[TaskResultCallback] = []

    @property
    def state(self) -> RunnerState:
        """Get current runner state."""
        return self._state

    @property
    def in_flight(self) -> bool:
        """Check if a batch is currently outstanding."""
        return self._state is RunnerState.DRAINING

    @property
    def closed(self) -> bool:
        """Check if the runner was closed."""
        return self._closed

    @property
    def batch_size(self) -> int:
        """Get the maximum number of tasks per batch."""
        return self._batch_size

    @property
    def batch_count(self) -> int:
        """Get number of batches started."""
        return self._batch_count

    @property
    def completed_count(self) -> int:
        """Get number of tasks that succeeded."""
        return self._completed_count

    @property
    def error_count(self) -> int:
        """Get number of tasks that failed."""
        return self._error_count

    def add_state_listener(self, callback: StateCallback) -> None:
        """Register a callback invoked on every state transition."""
        self._state_listeners.append(callback)

    def add_result_listener(self, callback: TaskResultCallback) -> None:
        """Register a callback invoked with each settled task's result."""
        self._result_listeners.append(callback)

    def run_next(self) -> bool:
        """Start the next batch if none is in flight.

        Returns:
            True if a batch was started, False if one is already in flight
            or there is nothing to do.

        Raises:
            RuntimeError: If the runner is closed.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Runner is closed")
            if self._state is RunnerState.DRAINING:
                logger.debug("Batch already in flight, not starting another")
                return False
            if self._queue.is_empty():
                return False
            return self._start_batch()

    def wait_until_settled(self, timeout: float | None = None) -> bool:
        """Block until no batch is in flight.

        Chained batches are waited for too; a stalled runner counts as settled.

        Args:
            timeout: Maximum seconds to wait (None = wait forever)

        Returns:
            True if settled, False if the timeout expired.
        """
        with self._settled:
            return self._settled.wait_for(
                lambda: self._state is not RunnerState.DRAINING,
                timeout=timeout,
            )

    def close(self, wait: bool = True) -> None:
        """Stop chaining batches and shut the thread pool down.

        Args:
            wait: Wait for running tasks to finish.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=wait)
        logger.debug("Batch runner closed")

    def __enter__(self) -> BatchRunner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _set_state(self, state: RunnerState) -> None:
        """Transition to a new state and notify listeners. Lock must be held."""
        self._state = state
        for callback in self._state_listeners:
            try:
                callback(state)
            except Exception:
                logger.exception("State listener failed")

    def _start_batch(self) -> bool:
        """Take the next batch from the queue and launch it. Lock must be held."""
        batch = self._queue.peek_batch(self._batch_size)
        if not batch:
            return False

        self._pending = len(batch)
        self._batch_failed = False
        self._batch_count += 1
        self._set_state(RunnerState.DRAINING)

        logger.info(
            "Starting batch #%d with %d tasks (%d queued)",
            self._batch_count,
            len(batch),
            len(self._queue),
        )
        for task in batch:
            self._executor.submit(self._run_task, task)
        return True

    def _run_task(self, task: SyncTask) -> None:
        """Run one task, then remove its entry and report its settlement."""
        start_time = time.monotonic()
        error: str | None = None

        try:
            self._handler(task)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.exception("Task failed: %s", task)
        finally:
            self._queue.dequeue(task.identity)

        result = TaskResult(
            identity=task.identity,
            action=task.action,
            success=error is None,
            error=error,
            elapsed_time=time.monotonic() - start_time,
        )
        for callback in self._result_listeners:
            try:
                callback(result)
            except Exception:
                logger.exception("Result listener failed for %s", task)

        self._task_settled(result.success)

    def _task_settled(self, success: bool) -> None:
        """Account for a settled task and settle the batch after the last one."""
        with self._lock:
            self._pending -= 1
            if success:
                self._completed_count += 1
            else:
                self._error_count += 1
                self._batch_failed = True

            if self._pending > 0:
                return

            if self._batch_failed:
                self._set_state(RunnerState.STALLED)
                logger.warning(
                    "Batch #%d finished with failures; %d tasks left waiting for run_next()",
                    self._batch_count,
                    len(self._queue),
                )
            else:
                self._set_state(RunnerState.IDLE)
                logger.debug("Batch #%d finished", self._batch_count)
                if not self._closed and not self._queue.is_empty():
                    self._start_batch()

            self._settled.notify_all()
