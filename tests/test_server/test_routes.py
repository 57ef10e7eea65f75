"""Tests for the HTTP API — health, queue status and task endpoints."""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from lumi.providers.mock import MockImageProvider
from lumi.server.app import create_app
from lumi.tasks.models import GenerationTask, TaskStatus


def _wait_for_status(client: TestClient, task_id: str, expected: str, timeout: float = 3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        data = client.get(f"/tasks/{task_id}").json()
        if data["task"]["status"] == expected:
            return data
        time.sleep(0.02)
    raise AssertionError(f"task {task_id} never reached {expected}")


@pytest.fixture
def client(test_settings, task_store):
    app = create_app(test_settings, store=task_store)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def slow_client(test_settings, task_store):
    """Provider that never finishes within a test."""
    app = create_app(test_settings, store=task_store, generator=MockImageProvider(delay_seconds=30))
    with TestClient(app) as c:
        yield c


# -- Health -------------------------------------------------------------------


def test_health_returns_ok(client):
    resp = client.get("/health")
    assert resp.status_code == 200

    data = resp.json()
    assert data["status"] == "ok"
    assert data["provider"] == "mock"
    assert "version" in data
    assert data["uptime_seconds"] >= 0


def test_queue_status(client):
    resp = client.get("/queue/status")
    assert resp.status_code == 200
    assert resp.json() == {
        "pending": 0,
        "running": 0,
        "retrying": 0,
        "completed_recent": 0,
        "max_concurrent": 2,
        "max_queue_size": 5,
    }


# -- Tasks --------------------------------------------------------------------


def test_create_task_generates_images(client):
    resp = client.post("/tasks", json={"prompt": "  a red fox in the snow  "})
    assert resp.status_code == 202

    data = resp.json()
    assert data["task"]["prompt"] == "a red fox in the snow"
    assert data["queue"]["external_task_id"] == data["task"]["id"]

    done = _wait_for_status(client, data["task"]["id"], "images_ready")
    assert [img["index"] for img in done["task"]["images"]] == [0, 1]
    assert done["queue"]["status"] == "completed"


@pytest.mark.parametrize("prompt", ["a", "   ", "x" * 501])
def test_create_task_validates_prompt(client, prompt):
    resp = client.post("/tasks", json={"prompt": prompt})
    assert resp.status_code == 422


def test_get_unknown_task(client):
    assert client.get("/tasks/missing").status_code == 404
    assert client.post("/tasks/missing/cancel").status_code == 404
    assert client.post("/tasks/missing/retry").status_code == 404


def test_list_tasks_filters_by_status(client, task_store):
    task_store.add(GenerationTask(prompt="done", status=TaskStatus.IMAGES_READY))
    task_store.add(GenerationTask(prompt="broken", status=TaskStatus.FAILED))

    resp = client.get("/tasks", params={"status": "failed"})
    assert resp.status_code == 200
    assert [t["prompt"] for t in resp.json()] == ["broken"]

    resp = client.get("/tasks", params={"limit": 1})
    assert [t["prompt"] for t in resp.json()] == ["broken"]


def test_queue_full_returns_503(slow_client, task_store):
    # 2 running + 5 waiting fills the queue
    for i in range(7):
        assert slow_client.post("/tasks", json={"prompt": f"fox {i}"}).status_code == 202

    resp = slow_client.post("/tasks", json={"prompt": "one too many"})
    assert resp.status_code == 503
    assert "full" in resp.json()["detail"]
    assert len(task_store.all()) == 7

    status = slow_client.get("/queue/status").json()
    assert status["running"] == 2
    assert status["pending"] == 5


def test_cancel_then_retry(slow_client):
    task_id = slow_client.post("/tasks", json={"prompt": "a slow fox"}).json()["task"]["id"]

    resp = slow_client.post(f"/tasks/{task_id}/cancel")
    assert resp.status_code == 200
    assert resp.json() == {"task_id": task_id, "cancelled": True}

    failed = _wait_for_status(slow_client, task_id, "failed")
    assert failed["task"]["error_message"] == "Task cancelled"
    assert slow_client.post(f"/tasks/{task_id}/cancel").status_code == 409

    resp = slow_client.post(f"/tasks/{task_id}/retry")
    assert resp.status_code == 200
    assert resp.json()["task"]["error_message"] is None
    assert resp.json()["queue"]["status"] == "running"


def test_retry_requires_failed_task(client, task_store):
    task = task_store.add(GenerationTask(prompt="done", status=TaskStatus.IMAGES_READY))
    resp = client.post(f"/tasks/{task.id}/retry")
    assert resp.status_code == 409


def test_startup_recovers_unfinished_tasks(test_settings, task_store):
    stuck = task_store.add(GenerationTask(prompt="left over", status=TaskStatus.GENERATING_IMAGES))

    with TestClient(create_app(test_settings, store=task_store)) as c:
        _wait_for_status(c, stuck.id, "images_ready")


def test_create_after_shutdown_returns_503(client, task_store):
    client.portal.call(client.app.state.queue.shutdown)

    resp = client.post("/tasks", json={"prompt": "a late fox"})
    assert resp.status_code == 503
    assert "shut down" in resp.json()["detail"]
    assert task_store.all() == []


def test_retry_after_shutdown_keeps_task_failed(client, task_store):
    task = task_store.add(
        GenerationTask(prompt="broken", status=TaskStatus.FAILED, error_message="boom")
    )
    client.portal.call(client.app.state.queue.shutdown)

    resp = client.post(f"/tasks/{task.id}/retry")
    assert resp.status_code == 503
    assert task_store.get(task.id).status == TaskStatus.FAILED
    assert task_store.get(task.id).error_message == "boom"
