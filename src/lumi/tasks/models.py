"""Pydantic models for durable generation tasks."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TaskStatus(StrEnum):
    """User-visible lifecycle of a generation task."""

    PENDING = "pending"
    GENERATING_IMAGES = "generating_images"
    IMAGES_READY = "images_ready"
    FAILED = "failed"


UNFINISHED_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.GENERATING_IMAGES})


def _generate_id() -> str:
    return secrets.token_hex(6)


def _now() -> datetime:
    return datetime.now(UTC)


class TaskImage(BaseModel):
    """One generated image, stamped with its position in the batch."""

    index: int
    url: str
    created_at: datetime = Field(default_factory=_now)


class GenerationTask(BaseModel):
    """A prompt and the images generated for it."""

    id: str = Field(default_factory=_generate_id)
    prompt: str
    status: TaskStatus = TaskStatus.PENDING
    images: list[TaskImage] = []
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    image_generation_started_at: datetime | None = None
    image_generation_completed_at: datetime | None = None
    failed_at: datetime | None = None
    error_message: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.status not in UNFINISHED_STATUSES
