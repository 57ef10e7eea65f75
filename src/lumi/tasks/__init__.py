"""Durable generation tasks — the user-visible system of record."""

from lumi.tasks.models import GenerationTask, TaskImage, TaskStatus
from lumi.tasks.store import TaskNotFoundError, TaskStore

__all__ = ["GenerationTask", "TaskImage", "TaskNotFoundError", "TaskStatus", "TaskStore"]
