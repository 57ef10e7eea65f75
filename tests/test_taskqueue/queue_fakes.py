"""Fakes for driving the task queue deterministically."""

from __future__ import annotations

import asyncio
from collections import defaultdict

HANG = "hang"


class ScriptedGenerator:
    """Plays back one scripted outcome per call to ``generate``.

    Each outcome is an exception (raised before any image), ``HANG`` (never
    yields), or a list of image URLs and exceptions consumed in order.
    Once the script runs out every call yields a full batch.
    """

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[str] = []

    async def generate(self, prompt, count, token):
        self.calls.append(prompt)
        outcome = self.outcomes.pop(0) if self.outcomes else None

        if outcome is None:
            for i in range(count):
                yield f"https://img.test/{prompt}/{i}.png"
            return
        if outcome == HANG:
            await asyncio.sleep(3600)
            return
        if isinstance(outcome, BaseException):
            raise outcome
        for item in outcome:
            if isinstance(item, BaseException):
                raise item
            yield item


class GatedGenerator:
    """Holds each prompt's stream open until the test releases it."""

    def __init__(self) -> None:
        self.gates: dict[str, asyncio.Event] = defaultdict(asyncio.Event)
        self.started: list[str] = []
        self.active = 0
        self.max_active = 0

    def release(self, *prompts: str) -> None:
        for prompt in prompts:
            self.gates[prompt].set()

    async def generate(self, prompt, count, token):
        self.started.append(prompt)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.gates[prompt].wait()
            for i in range(count):
                yield f"https://img.test/{prompt}/{i}.png"
        finally:
            self.active -= 1


class RecordingStore:
    """Records every status-sync call; optionally fails selected operations."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.calls: list[tuple] = []
        self.fail_on = fail_on or set()

    def _call(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} is unavailable")

    def mark_started(self, task_id):
        self._call("mark_started", task_id)

    def append_artifact(self, task_id, artifact, index):
        self._call("append_artifact", task_id, artifact, index)

    def mark_completed(self, task_id):
        self._call("mark_completed", task_id)

    def mark_failed(self, task_id, message):
        self._call("mark_failed", task_id, message)

    def ops(self, task_id: str) -> list[str]:
        return [call[0] for call in self.calls if call[1] == task_id]


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Poll ``predicate`` on the event loop until it holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)

