"""JSON file persistence for generation tasks."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from lumi.config.constants import TASKS_FILE
from lumi.tasks.models import (
    UNFINISHED_STATUSES,
    GenerationTask,
    TaskImage,
    TaskStatus,
)

logger = logging.getLogger("lumi.tasks.store")


class TaskNotFoundError(KeyError):
    """No task with the given ID exists in the store."""


class TaskStore:
    """Load/save generation tasks from a JSON file.

    Uses atomic writes (write to .tmp, then replace) to prevent corruption.
    Implements the status-sync operations the task queue calls; each is safe
    to repeat.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or TASKS_FILE
        self._tasks: dict[str, GenerationTask] = {}
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    # -- Persistence -----------------------------------------------------------

    def load(self) -> None:
        """Load tasks from disk. Silently starts empty if file is missing."""
        self._tasks.clear()
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            for raw in data:
                task = GenerationTask.model_validate(raw)
                self._tasks[task.id] = task
            logger.debug("Loaded %d tasks from %s", len(self._tasks), self._path)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to load tasks: %s", exc)

    def save(self) -> None:
        """Persist all tasks to disk atomically."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        data = [task.model_dump(mode="json") for task in self._tasks.values()]
        tmp.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        tmp.replace(self._path)

    # -- CRUD ------------------------------------------------------------------

    def add(self, task: GenerationTask) -> GenerationTask:
        """Add a task and persist."""
        self._tasks[task.id] = task
        self.save()
        return task

    def get(self, task_id: str) -> GenerationTask | None:
        """Retrieve a task by ID."""
        return self._tasks.get(task_id)

    def update(self, task: GenerationTask) -> GenerationTask:
        """Update an existing task and persist."""
        task.updated_at = datetime.now(UTC)
        self._tasks[task.id] = task
        self.save()
        return task

    def remove(self, task_id: str) -> bool:
        """Remove a task by ID. Returns True if it existed."""
        if task_id in self._tasks:
            del self._tasks[task_id]
            self.save()
            return True
        return False

    def all(self) -> list[GenerationTask]:
        """Return all tasks, oldest first."""
        return sorted(self._tasks.values(), key=lambda t: t.created_at)

    # -- Query helpers ---------------------------------------------------------

    def find_by_status(self, status: TaskStatus) -> list[GenerationTask]:
        """Return all tasks with a given status."""
        return [t for t in self.all() if t.status == status]

    def find_unfinished(self) -> list[GenerationTask]:
        """Return pending/generating tasks, oldest first."""
        return [t for t in self.all() if t.status in UNFINISHED_STATUSES]

    # -- Queue status sync -----------------------------------------------------

    def mark_started(self, task_id: str) -> None:
        task = self._require(task_id)
        now = datetime.now(UTC)
        task.status = TaskStatus.GENERATING_IMAGES
        task.image_generation_started_at = now
        task.failed_at = None
        task.error_message = None
        self.update(task)

    def append_artifact(self, task_id: str, artifact: str, index: int) -> None:
        """Store an image at ``index``, replacing any earlier one there."""
        task = self._require(task_id)
        images = [img for img in task.images if img.index != index]
        images.append(TaskImage(index=index, url=artifact))
        images.sort(key=lambda img: img.index)
        task.images = images
        self.update(task)

    def mark_completed(self, task_id: str) -> None:
        task = self._require(task_id)
        task.status = TaskStatus.IMAGES_READY
        task.image_generation_completed_at = datetime.now(UTC)
        self.update(task)

    def mark_failed(self, task_id: str, message: str) -> None:
        task = self._require(task_id)
        task.status = TaskStatus.FAILED
        task.failed_at = datetime.now(UTC)
        task.error_message = message
        self.update(task)

    def reset_for_retry(self, task_id: str) -> GenerationTask:
        """Clear a task's images and outcome so it can be generated again."""
        task = self._require(task_id)
        task.status = TaskStatus.PENDING
        task.images = []
        task.image_generation_started_at = None
        task.image_generation_completed_at = None
        task.failed_at = None
        task.error_message = None
        return self.update(task)

    def _require(self, task_id: str) -> GenerationTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task
