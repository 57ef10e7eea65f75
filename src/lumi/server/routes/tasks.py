"""Generation task endpoints — create, inspect, cancel and retry."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel, Field, field_validator

from lumi.config.constants import MAX_PROMPT_LENGTH, MIN_PROMPT_LENGTH
from lumi.taskqueue.errors import QueueError
from lumi.taskqueue.models import QueueTaskView
from lumi.tasks.models import GenerationTask, TaskStatus

logger = logging.getLogger("lumi.server.tasks")

tasks_router = APIRouter(prefix="/tasks", tags=["Tasks"])


class CreateTaskRequest(BaseModel):
    prompt: str = Field(min_length=MIN_PROMPT_LENGTH, max_length=MAX_PROMPT_LENGTH)

    @field_validator("prompt", mode="before")
    @classmethod
    def strip_prompt(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class TaskResponse(BaseModel):
    task: GenerationTask
    queue: QueueTaskView | None = None


class CancelResponse(BaseModel):
    task_id: str
    cancelled: bool


def _response(request: Request, task: GenerationTask) -> TaskResponse:
    return TaskResponse(task=task, queue=request.app.state.queue.info(task.id))


def _get_or_404(request: Request, task_id: str) -> GenerationTask:
    task = request.app.state.store.get(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


@tasks_router.post("", response_model=TaskResponse, status_code=status.HTTP_202_ACCEPTED)
async def create_task(body: CreateTaskRequest, request: Request) -> TaskResponse:
    store = request.app.state.store
    task = store.add(GenerationTask(prompt=body.prompt))
    try:
        await request.app.state.queue.submit(task.id, task.prompt)
    except QueueError as exc:
        store.remove(task.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    logger.info("Created task %s", task.id)
    return _response(request, task)


@tasks_router.get("", response_model=list[GenerationTask])
async def list_tasks(
    request: Request,
    task_status: TaskStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=500),
) -> list[GenerationTask]:
    store = request.app.state.store
    tasks = store.find_by_status(task_status) if task_status else store.all()
    return list(reversed(tasks))[:limit]


@tasks_router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, request: Request) -> TaskResponse:
    return _response(request, _get_or_404(request, task_id))


@tasks_router.post("/{task_id}/cancel", response_model=CancelResponse)
async def cancel_task(task_id: str, request: Request) -> CancelResponse:
    _get_or_404(request, task_id)
    if not request.app.state.queue.cancel(task_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Task is not queued or running"
        )
    return CancelResponse(task_id=task_id, cancelled=True)


@tasks_router.post("/{task_id}/retry", response_model=TaskResponse)
async def retry_task(task_id: str, request: Request) -> TaskResponse:
    task = _get_or_404(request, task_id)
    if task.status != TaskStatus.FAILED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only failed tasks can be retried (status: {task.status.value})",
        )

    store = request.app.state.store
    previous_error = task.error_message
    task = store.reset_for_retry(task_id)
    try:
        await request.app.state.queue.submit(task.id, task.prompt)
    except QueueError as exc:
        store.mark_failed(task.id, previous_error or str(exc))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    logger.info("Retrying task %s", task.id)
    return _response(request, task)
