"""FastAPI application factory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import FastAPI

from lumi import __version__
from lumi.providers import create_provider
from lumi.server.lifespan import lifespan
from lumi.server.routes.health import health_router
from lumi.server.routes.tasks import tasks_router
from lumi.taskqueue.manager import TaskQueueManager
from lumi.tasks.store import TaskStore

if TYPE_CHECKING:
    from lumi.config.settings import Settings
    from lumi.taskqueue.protocols import ImageGenerator

logger = logging.getLogger("lumi.server")


def create_app(
    settings: Settings,
    store: TaskStore | None = None,
    generator: ImageGenerator | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    The store and provider default to the ones described by ``settings``;
    tests pass their own. One queue manager is created per app and lives on
    ``app.state.queue``.
    """
    app = FastAPI(
        title="Lumi",
        version=__version__,
        description="Prompt-to-image generation queue",
        lifespan=lifespan,
    )

    store = store or TaskStore(path=Path(settings.tasks_file))
    generator = generator or create_provider(settings.provider)

    app.state.settings = settings
    app.state.store = store
    app.state.queue = TaskQueueManager(generator, store, settings.queue)

    app.include_router(health_router)
    app.include_router(tasks_router)

    logger.debug("App created with provider %s", settings.provider.provider)
    return app
