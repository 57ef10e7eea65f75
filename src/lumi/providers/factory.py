"""Build the configured image provider."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lumi.config.constants import PROVIDER_MOCK, PROVIDER_SILICONFLOW
from lumi.providers.base import BaseImageProvider
from lumi.providers.mock import MockImageProvider
from lumi.providers.siliconflow import SiliconFlowImageProvider

if TYPE_CHECKING:
    from lumi.config.models import ProviderConfig


def create_provider(config: ProviderConfig) -> BaseImageProvider:
    if config.provider == PROVIDER_MOCK:
        return MockImageProvider(delay_seconds=config.mock_delay_seconds)
    if config.provider == PROVIDER_SILICONFLOW:
        return SiliconFlowImageProvider(
            api_key=config.api_key,
            endpoint=config.endpoint,
            model=config.model,
            image_size=config.image_size,
            timeout_seconds=config.request_timeout_seconds,
        )
    raise ValueError(f"Unknown image provider: {config.provider}")
