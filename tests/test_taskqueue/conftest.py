from __future__ import annotations

import pytest
from queue_fakes import RecordingStore

from lumi.config.models import QueueConfig


@pytest.fixture
def queue_config() -> QueueConfig:
    return QueueConfig(
        max_concurrent=3,
        task_timeout_seconds=1.0,
        max_retries=3,
        retry_base_delay_seconds=0.01,
        rate_limit_delay_seconds=0.05,
        max_queue_size=10,
        history_size=10,
        images_per_task=2,
    )


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()
