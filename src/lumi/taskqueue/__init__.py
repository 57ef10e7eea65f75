"""In-memory generation queue — admission, retries, backoff and timeouts."""

from lumi.taskqueue.cancellation import CancellationToken
from lumi.taskqueue.errors import (
    NoArtifactsError,
    ProviderError,
    QueueError,
    QueueFullError,
    TaskCancelledError,
    TaskTimeoutError,
)
from lumi.taskqueue.manager import TaskQueueManager
from lumi.taskqueue.models import QueueStatus, QueueTask, QueueTaskStatus, QueueTaskView
from lumi.taskqueue.retry import FailureClass, RetryPolicy, is_rate_limited, is_retryable

__all__ = [
    "CancellationToken",
    "FailureClass",
    "NoArtifactsError",
    "ProviderError",
    "QueueError",
    "QueueFullError",
    "QueueStatus",
    "QueueTask",
    "QueueTaskStatus",
    "QueueTaskView",
    "RetryPolicy",
    "TaskCancelledError",
    "TaskQueueManager",
    "TaskTimeoutError",
    "is_rate_limited",
    "is_retryable",
]
