"""Image generation providers."""

from lumi.providers.base import BaseImageProvider
from lumi.providers.factory import create_provider
from lumi.providers.mock import MockImageProvider
from lumi.providers.siliconflow import SiliconFlowAPIError, SiliconFlowImageProvider

__all__ = [
    "BaseImageProvider",
    "MockImageProvider",
    "SiliconFlowAPIError",
    "SiliconFlowImageProvider",
    "create_provider",
]
