"""Exception types raised by the task queue and its collaborators."""

from __future__ import annotations


class QueueError(Exception):
    """Base class for task queue errors."""


class QueueFullError(QueueError):
    """The pending queue is at its configured maximum size."""

    def __init__(self, max_queue_size: int) -> None:
        super().__init__(
            f"Task queue is full ({max_queue_size} tasks waiting), try again later"
        )
        self.max_queue_size = max_queue_size


class TaskCancelledError(QueueError):
    """A running task was cancelled by its caller."""

    def __init__(self, message: str = "Task cancelled") -> None:
        super().__init__(message)


class TaskTimeoutError(QueueError):
    """A running task exceeded its timeout budget."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Task timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class NoArtifactsError(QueueError):
    """The provider finished without yielding a single artifact."""

    def __init__(self, message: str = "No images generated") -> None:
        super().__init__(message)


class ProviderError(Exception):
    """Failure reported by an external generation provider.

    ``status_code`` is the provider's HTTP status when one is known; the
    retry classifier uses it to tell fatal errors from transient ones.
    """

    def __init__(
        self,
        provider: str,
        status_code: int | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(message or f"{provider} API call failed")
        self.provider = provider
        self.status_code = status_code
