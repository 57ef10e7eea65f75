"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from lumi.config.models import ProviderConfig, QueueConfig
from lumi.config.settings import Settings
from lumi.tasks.store import TaskStore


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings configured for testing (mock provider, fast queue)."""
    return Settings(
        queue=QueueConfig(
            max_concurrent=2,
            task_timeout_seconds=2.0,
            max_retries=1,
            retry_base_delay_seconds=0.01,
            rate_limit_delay_seconds=0.02,
            max_queue_size=5,
            images_per_task=2,
        ),
        provider=ProviderConfig(provider="mock", mock_delay_seconds=0.01),
        tasks_file=str(tmp_path / "tasks.json"),
    )


@pytest.fixture
def task_store(tmp_path: Path) -> TaskStore:
    return TaskStore(path=tmp_path / "tasks.json")
