"""Cooperative cancellation token shared by a running task and its provider call."""

from __future__ import annotations

import asyncio

from lumi.taskqueue.errors import TaskCancelledError


class CancellationToken:
    """One-shot cancellation signal.

    The queue hands a token to the provider's ``generate`` call and races the
    provider stream against :meth:`wait`. Providers should call
    :meth:`raise_if_cancelled` between units of work.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "Task cancelled") -> bool:
        """Signal cancellation. Returns False if already cancelled."""
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TaskCancelledError(self._reason or "Task cancelled")

    async def wait(self) -> str:
        """Block until cancelled; returns the reason."""
        await self._event.wait()
        return self._reason or "Task cancelled"
