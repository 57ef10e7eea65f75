"""Contracts the queue expects from its external collaborators."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Protocol, runtime_checkable

from lumi.taskqueue.cancellation import CancellationToken


@runtime_checkable
class ImageGenerator(Protocol):
    """Yields artifacts (image URLs) one at a time for a prompt.

    ``generate`` is an async generator: lazy, finite and not restartable.
    Failures are raised as :class:`~lumi.taskqueue.errors.ProviderError`
    carrying the provider's status code when known. Implementations should
    stop early once ``token`` is cancelled.
    """

    def generate(
        self, prompt: str, count: int, token: CancellationToken
    ) -> AsyncGenerator[str, None]: ...


@runtime_checkable
class TaskRecorder(Protocol):
    """Durable system of record for user-visible task state.

    Every method must tolerate being called more than once for the same
    transition.
    """

    def mark_started(self, task_id: str) -> None: ...

    def append_artifact(self, task_id: str, artifact: str, index: int) -> None: ...

    def mark_completed(self, task_id: str) -> None: ...

    def mark_failed(self, task_id: str, message: str) -> None: ...
