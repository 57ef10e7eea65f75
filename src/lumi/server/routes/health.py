"""Health and queue status endpoints."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from lumi import __version__
from lumi.taskqueue.models import QueueStatus

health_router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    provider: str
    uptime_seconds: float


@health_router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    settings = request.app.state.settings
    started_at = getattr(request.app.state, "started_at", datetime.now(UTC))
    uptime = (datetime.now(UTC) - started_at).total_seconds()
    return HealthResponse(
        status="ok",
        version=__version__,
        provider=settings.provider.provider,
        uptime_seconds=round(uptime, 1),
    )


@health_router.get("/queue/status", response_model=QueueStatus)
async def queue_status(request: Request) -> QueueStatus:
    return request.app.state.queue.status()
