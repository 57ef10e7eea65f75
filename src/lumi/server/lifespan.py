"""Application lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from lumi.taskqueue.recovery import recover_unfinished

logger = logging.getLogger("lumi.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown hooks for lumi."""
    settings = app.state.settings
    queue = app.state.queue

    # --- Startup ---
    logger.info(
        "Lumi server starting: provider=%s, max_concurrent=%d, host=%s, port=%d",
        settings.provider.provider,
        settings.queue.max_concurrent,
        settings.server.host,
        settings.server.port,
    )

    if settings.queue.recover_on_startup:
        await recover_unfinished(app.state.store, queue)

    app.state.started_at = datetime.now(UTC)

    yield

    # --- Shutdown ---
    await queue.shutdown()
    logger.info("Lumi server shutting down.")
