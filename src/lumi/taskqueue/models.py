"""In-memory records owned by the task queue."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel

from lumi.taskqueue.cancellation import CancellationToken


class QueueTaskStatus(StrEnum):
    """Lifecycle states of a queued task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def _generate_queue_id() -> str:
    return f"queue_{uuid.uuid4().hex[:12]}"


@dataclass
class QueueTask:
    """Transient scheduler record for one submission of a durable task."""

    external_task_id: str
    payload: str
    id: str = field(default_factory=_generate_queue_id)
    status: QueueTaskStatus = QueueTaskStatus.PENDING
    retry_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None
    cancellation_token: CancellationToken | None = field(default=None, repr=False)
    artifact_count: int = 0
    retry_delays: list[float] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def snapshot(self) -> QueueTaskView:
        return QueueTaskView(
            id=self.id,
            external_task_id=self.external_task_id,
            status=self.status,
            retry_count=self.retry_count,
            created_at=self.created_at,
            started_at=self.started_at,
            completed_at=self.completed_at,
            error=self.error,
            artifact_count=self.artifact_count,
            retry_delays=list(self.retry_delays),
        )


class QueueTaskView(BaseModel):
    """Read-only, serializable copy of a :class:`QueueTask`."""

    id: str
    external_task_id: str
    status: QueueTaskStatus
    retry_count: int
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None
    artifact_count: int = 0
    retry_delays: list[float] = []


class QueueStatus(BaseModel):
    """Point-in-time counters for the whole queue."""

    pending: int
    running: int
    retrying: int
    completed_recent: int
    max_concurrent: int
    max_queue_size: int
