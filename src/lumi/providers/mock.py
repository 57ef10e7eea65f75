"""Offline provider for development and demos."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

from lumi.providers.base import BaseImageProvider
from lumi.taskqueue.cancellation import CancellationToken

MOCK_IMAGES = (
    "https://images.unsplash.com/photo-1506794778202-cad84cf45f1d?w=512&h=512&fit=crop",
    "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=512&h=512&fit=crop",
    "https://images.unsplash.com/photo-1494790108377-be9c29b29330?w=512&h=512&fit=crop",
    "https://images.unsplash.com/photo-1500648767791-00dcc994a43e?w=512&h=512&fit=crop",
    "https://images.unsplash.com/photo-1534528741775-53994a69daeb?w=512&h=512&fit=crop",
    "https://images.unsplash.com/photo-1519085360753-af0119f7cbe7?w=512&h=512&fit=crop",
)


class MockImageProvider(BaseImageProvider):
    """Yields stock image URLs after a fixed per-image delay."""

    name = "mock"

    def __init__(self, delay_seconds: float = 0.5) -> None:
        self.delay_seconds = delay_seconds

    async def _generate(
        self, prompt: str, count: int, token: CancellationToken
    ) -> AsyncGenerator[str, None]:
        for i in range(count):
            await asyncio.sleep(self.delay_seconds)
            token.raise_if_cancelled()
            yield MOCK_IMAGES[i % len(MOCK_IMAGES)]
