"""Shared behaviour for image generation providers."""

from __future__ import annotations

import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator

from lumi.taskqueue.cancellation import CancellationToken

logger = logging.getLogger("lumi.providers")


class BaseImageProvider(ABC):
    """Streams generated image URLs one at a time.

    Subclasses implement :meth:`_generate`; the public :meth:`generate`
    validates configuration and logs the start and end of each stream.
    """

    name: str = "base"

    def validate(self) -> None:
        """Raise :class:`~lumi.taskqueue.errors.ProviderError` if the provider cannot be called."""

    @abstractmethod
    def _generate(
        self, prompt: str, count: int, token: CancellationToken
    ) -> AsyncGenerator[str, None]: ...

    async def generate(
        self, prompt: str, count: int, token: CancellationToken
    ) -> AsyncGenerator[str, None]:
        self.validate()
        logger.info(
            "%s: generating %d images (prompt length %d)", self.name, count, len(prompt)
        )
        produced = 0
        async with contextlib.aclosing(self._generate(prompt, count, token)) as stream:
            async for url in stream:
                produced += 1
                yield url
        logger.info("%s: stream finished with %d images", self.name, produced)
