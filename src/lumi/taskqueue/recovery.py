"""Re-submit durable tasks that a previous process left unfinished."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lumi.taskqueue.errors import QueueFullError

if TYPE_CHECKING:
    from lumi.taskqueue.manager import TaskQueueManager
    from lumi.tasks.store import TaskStore

logger = logging.getLogger("lumi.taskqueue.recovery")


async def recover_unfinished(store: TaskStore, manager: TaskQueueManager) -> list[str]:
    """Queue every pending or generating task found in the store.

    Meant to run once at startup, before new submissions arrive. Tasks that
    are already live in ``manager`` are left alone. Stops early if the queue
    fills up; the rest are marked failed so they do not stay stuck.

    Returns the IDs of the tasks that were queued.
    """
    unfinished = store.find_unfinished()
    if not unfinished:
        return []

    recovered: list[str] = []
    for index, task in enumerate(unfinished):
        try:
            await manager.submit(task.id, task.prompt)
        except QueueFullError as exc:
            for skipped in unfinished[index:]:
                store.mark_failed(skipped.id, str(exc))
            logger.warning(
                "Queue full during recovery, failed %d remaining tasks",
                len(unfinished) - index,
            )
            break
        recovered.append(task.id)

    logger.info("Recovered %d unfinished tasks", len(recovered))
    return recovered
