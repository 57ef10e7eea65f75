"""The shipped provider and store satisfy the queue's collaborator contracts."""

from __future__ import annotations

from lumi.providers import MockImageProvider, SiliconFlowImageProvider
from lumi.taskqueue.protocols import ImageGenerator, TaskRecorder


def test_providers_are_image_generators():
    assert isinstance(MockImageProvider(), ImageGenerator)
    assert isinstance(
        SiliconFlowImageProvider(api_key="k", endpoint="https://x.test", model="m"),
        ImageGenerator,
    )


def test_task_store_is_a_recorder(task_store):
    assert isinstance(task_store, TaskRecorder)
