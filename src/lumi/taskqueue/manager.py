"""Task queue manager — bounded-concurrency image generation with retries.

Tasks are admitted FIFO up to ``max_concurrent``. Each admitted task streams
images from the provider under a single timeout budget, persisting every
image as it arrives. Failed attempts are classified; retryable ones wait out
an exponential backoff (off the concurrency budget) and rejoin the tail of
the queue, the rest fail terminally.

The queue lives in one process and one event loop. Nothing here survives a
restart; see :mod:`lumi.taskqueue.recovery` for picking up durable tasks that
were in flight when the process stopped.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import OrderedDict, deque
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from lumi.config.models import QueueConfig
from lumi.taskqueue.cancellation import CancellationToken
from lumi.taskqueue.errors import (
    NoArtifactsError,
    QueueError,
    QueueFullError,
    TaskCancelledError,
    TaskTimeoutError,
)
from lumi.taskqueue.models import QueueStatus, QueueTask, QueueTaskStatus, QueueTaskView
from lumi.taskqueue.retry import FailureClass, RetryPolicy, classify

if TYPE_CHECKING:
    from lumi.taskqueue.protocols import ImageGenerator, TaskRecorder

logger = logging.getLogger("lumi.taskqueue.manager")

CANCELLED_MESSAGE = "Task cancelled"


async def _reap(*tasks: asyncio.Task) -> None:
    """Cancel any unfinished helper tasks and wait for all of them."""
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class TaskQueueManager:
    """Owns the pending queue, the running set and the recent history.

    All state is mutated on the event loop thread only. Callers interact
    through :meth:`submit`, :meth:`cancel`, :meth:`status` and :meth:`info`.
    """

    def __init__(
        self,
        generator: ImageGenerator,
        store: TaskRecorder,
        config: QueueConfig | None = None,
    ) -> None:
        self._generator = generator
        self._store = store
        self._config = config or QueueConfig()
        self._policy = RetryPolicy(
            max_retries=self._config.max_retries,
            base_delay=self._config.retry_base_delay_seconds,
            rate_limit_delay=self._config.rate_limit_delay_seconds,
        )
        self._pending: deque[QueueTask] = deque()
        self._running: dict[str, QueueTask] = {}
        self._retrying: dict[str, tuple[QueueTask, asyncio.TimerHandle]] = {}
        self._history: OrderedDict[str, QueueTask] = OrderedDict()
        self._workers: dict[str, asyncio.Task] = {}
        self._processing = False
        self._closed = False
        self._idle = asyncio.Event()
        self._idle.set()

    # -- Public API ------------------------------------------------------------

    async def submit(self, external_task_id: str, payload: str) -> str:
        """Queue generation for a durable task and return the queue task ID.

        Returns the existing ID if the task is already pending, waiting for a
        retry or running. Does not wait for the task to execute.

        Raises:
            QueueFullError: the pending queue is at ``max_queue_size``.
        """
        if not external_task_id:
            raise ValueError("external_task_id must not be empty")
        if self._closed:
            raise QueueError("Task queue is shut down")

        existing = self._find_live(external_task_id)
        if existing is not None:
            logger.info(
                "Task %s already queued as %s (%s), skipping",
                external_task_id,
                existing.id,
                existing.status.value,
            )
            return existing.id

        if len(self._pending) >= self._config.max_queue_size:
            raise QueueFullError(self._config.max_queue_size)

        task = QueueTask(external_task_id=external_task_id, payload=payload)
        self._pending.append(task)
        self._idle.clear()
        logger.info(
            "Queued %s for task %s (%d pending, %d running)",
            task.id,
            external_task_id,
            len(self._pending),
            len(self._running),
        )

        self._process_queue()
        return task.id

    def cancel(self, external_task_id: str) -> bool:
        """Cancel a pending, retrying or running task.

        Pending and retrying tasks fail immediately. Running tasks are only
        signalled; they reach ``failed`` once the in-flight call unwinds.
        Returns False if there is nothing live to cancel.
        """
        for task in list(self._pending):
            if task.external_task_id == external_task_id:
                self._pending.remove(task)
                logger.info("Removed %s from the queue", task.id)
                self._fail_without_running(task)
                return True

        for queue_id, (task, handle) in list(self._retrying.items()):
            if task.external_task_id == external_task_id:
                handle.cancel()
                del self._retrying[queue_id]
                logger.info("Cancelled pending retry of %s", task.id)
                self._fail_without_running(task)
                return True

        for task in self._running.values():
            if task.external_task_id == external_task_id:
                if task.cancellation_token is not None:
                    task.cancellation_token.cancel(CANCELLED_MESSAGE)
                logger.info("Signalled cancellation of running %s", task.id)
                return True

        logger.warning("No cancellable task found for %s", external_task_id)
        return False

    def status(self) -> QueueStatus:
        return QueueStatus(
            pending=len(self._pending),
            running=len(self._running),
            retrying=len(self._retrying),
            completed_recent=len(self._history),
            max_concurrent=self._config.max_concurrent,
            max_queue_size=self._config.max_queue_size,
        )

    def info(self, external_task_id: str) -> QueueTaskView | None:
        """Snapshot of the live task, or of the most recent finished one."""
        task = self._find_live(external_task_id)
        if task is not None:
            return task.snapshot()
        for task in reversed(self._history.values()):
            if task.external_task_id == external_task_id:
                return task.snapshot()
        return None

    async def wait_idle(self, timeout: float | None = None) -> None:
        """Wait until nothing is pending, retrying or running."""
        await asyncio.wait_for(self._idle.wait(), timeout=timeout)

    async def shutdown(self) -> None:
        """Stop scheduling and interrupt running work.

        Interrupted and still-queued tasks are not marked failed in the
        store, so a restart can pick them up again.
        """
        if self._closed:
            return
        self._closed = True

        for _, handle in self._retrying.values():
            handle.cancel()
        dropped = len(self._pending) + len(self._retrying)
        self._retrying.clear()
        self._pending.clear()

        workers = list(self._workers.values())
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

        self._idle.set()
        logger.info(
            "Task queue shut down (%d interrupted, %d not started)",
            len(workers),
            dropped,
        )

    # -- Scheduling ------------------------------------------------------------

    def _process_queue(self) -> None:
        """Admit queued tasks until the concurrency ceiling is reached."""
        if self._processing or self._closed:
            return

        self._processing = True
        try:
            while self._pending:
                if len(self._running) >= self._config.max_concurrent:
                    logger.debug(
                        "Concurrency limit reached (%d), %d waiting",
                        self._config.max_concurrent,
                        len(self._pending),
                    )
                    break
                self._start(self._pending.popleft())
        finally:
            self._processing = False

    def _start(self, task: QueueTask) -> None:
        task.status = QueueTaskStatus.RUNNING
        task.started_at = datetime.now(UTC)
        task.completed_at = None
        task.error = None
        task.artifact_count = 0
        task.cancellation_token = CancellationToken()
        self._running[task.id] = task
        self._workers[task.id] = asyncio.create_task(
            self._run_task(task), name=f"lumi-queue-{task.id}"
        )

    def _requeue(self, task: QueueTask) -> None:
        """Timer callback: put a task back after its backoff delay."""
        if self._retrying.pop(task.id, None) is None or self._closed:
            return
        self._pending.append(task)
        logger.info("Re-queued %s after backoff", task.id)
        self._process_queue()

    # -- Execution -------------------------------------------------------------

    async def _run_task(self, task: QueueTask) -> None:
        token = task.cancellation_token
        assert token is not None
        logger.info(
            "Starting %s for task %s (attempt %d/%d)",
            task.id,
            task.external_task_id,
            task.retry_count + 1,
            self._policy.max_retries + 1,
        )

        try:
            self._record("mark_started", task.external_task_id)
            await self._run_with_timeout(task, token)
        except asyncio.CancelledError:
            logger.warning("Task %s interrupted by queue shutdown", task.id)
            raise
        except Exception as exc:
            self._handle_failure(task, exc)
        else:
            self._handle_success(task)
        finally:
            self._running.pop(task.id, None)
            self._workers.pop(task.id, None)
            task.cancellation_token = None
            self._process_queue()
            self._refresh_idle()

    async def _run_with_timeout(self, task: QueueTask, token: CancellationToken) -> None:
        """Race the provider stream against the timeout and the cancel token."""
        timeout = self._config.task_timeout_seconds
        consumer = asyncio.create_task(
            self._consume(task, token), name=f"lumi-generate-{task.id}"
        )
        watcher = asyncio.create_task(token.wait(), name=f"lumi-cancel-{task.id}")

        error: Exception | None = None
        try:
            done, _ = await asyncio.wait(
                {consumer, watcher},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if consumer not in done:
                if watcher in done:
                    error = TaskCancelledError(token.reason or CANCELLED_MESSAGE)
                else:
                    error = TaskTimeoutError(timeout)
                    token.cancel(str(error))
        finally:
            await _reap(consumer, watcher)

        if error is not None:
            raise error
        if consumer.cancelled():
            raise QueueError("Generation call was cancelled unexpectedly")
        consumer.result()

    async def _consume(self, task: QueueTask, token: CancellationToken) -> None:
        """Pull images from the provider, persisting each one as it arrives."""
        requested = self._config.images_per_task
        index = 0

        async with contextlib.aclosing(
            self._generator.generate(task.payload, requested, token)
        ) as stream:
            async for artifact in stream:
                token.raise_if_cancelled()
                self._store.append_artifact(task.external_task_id, artifact, index)
                index += 1
                task.artifact_count = index
                logger.info("Image %d/%d ready for %s", index, requested, task.id)

        if index == 0:
            raise NoArtifactsError()
        if index < requested:
            logger.warning("Only %d/%d images generated for %s", index, requested, task.id)

    # -- Outcomes --------------------------------------------------------------

    def _handle_success(self, task: QueueTask) -> None:
        task.status = QueueTaskStatus.COMPLETED
        task.completed_at = datetime.now(UTC)
        logger.info(
            "Completed %s for task %s in %.1fs (%d images, %d retries)",
            task.id,
            task.external_task_id,
            task.duration_seconds or 0.0,
            task.artifact_count,
            task.retry_count,
        )
        self._record("mark_completed", task.external_task_id)
        self._archive(task)

    def _handle_failure(self, task: QueueTask, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        failure = classify(exc)
        logger.warning(
            "Attempt %d of %s failed (%s): %s",
            task.retry_count + 1,
            task.id,
            failure.value,
            message,
        )

        if self._policy.should_retry(exc, task.retry_count):
            delay = self._policy.delay(exc, task.retry_count)
            task.retry_count += 1
            task.status = QueueTaskStatus.PENDING
            task.retry_delays.append(delay)
            handle = asyncio.get_running_loop().call_later(delay, self._requeue, task)
            self._retrying[task.id] = (task, handle)
            logger.info(
                "Retrying %s in %.1fs (%d/%d)%s",
                task.id,
                delay,
                task.retry_count,
                self._policy.max_retries,
                " [rate limited]" if failure is FailureClass.RATE_LIMITED else "",
            )
            return

        task.status = QueueTaskStatus.FAILED
        task.error = message
        task.completed_at = datetime.now(UTC)
        if failure is FailureClass.FATAL:
            logger.error("Task %s failed with a non-retryable error: %s", task.id, message)
        else:
            logger.error(
                "Task %s failed after %d retries: %s", task.id, task.retry_count, message
            )
        self._record("mark_failed", task.external_task_id, message)
        self._archive(task)

    def _fail_without_running(self, task: QueueTask) -> None:
        """Terminal cancellation for a task that is not executing."""
        task.status = QueueTaskStatus.FAILED
        task.error = CANCELLED_MESSAGE
        task.completed_at = datetime.now(UTC)
        self._record("mark_failed", task.external_task_id, CANCELLED_MESSAGE)
        self._archive(task)
        self._refresh_idle()

    # -- Internal helpers ------------------------------------------------------

    def _record(self, operation: str, task_id: str, *args: object) -> None:
        """Best-effort status write; the in-memory state stays authoritative."""
        try:
            getattr(self._store, operation)(task_id, *args)
        except Exception:
            logger.exception("Failed to record %s for task %s", operation, task_id)

    def _archive(self, task: QueueTask) -> None:
        self._history[task.id] = task
        while len(self._history) > self._config.history_size:
            self._history.popitem(last=False)

    def _find_live(self, external_task_id: str) -> QueueTask | None:
        for task in self._pending:
            if task.external_task_id == external_task_id:
                return task
        for task, _ in self._retrying.values():
            if task.external_task_id == external_task_id:
                return task
        for task in self._running.values():
            if task.external_task_id == external_task_id:
                return task
        return None

    def _refresh_idle(self) -> None:
        if not (self._pending or self._running or self._retrying):
            self._idle.set()
