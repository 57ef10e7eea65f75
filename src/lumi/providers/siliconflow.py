"""SiliconFlow image generation adapter.

API: https://docs.siliconflow.cn/api-reference/images/generations

The endpoint returns permanent URLs. We request one image per call so each
one can be persisted before the next is requested.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Any

import httpx

from lumi.providers.base import BaseImageProvider
from lumi.taskqueue.cancellation import CancellationToken
from lumi.taskqueue.errors import ProviderError

logger = logging.getLogger("lumi.providers.siliconflow")


class SiliconFlowAPIError(ProviderError):
    """Non-success response from the SiliconFlow API."""

    def __init__(self, status_code: int | None, message: str) -> None:
        super().__init__("siliconflow", status_code, message)


class SiliconFlowImageProvider(BaseImageProvider):
    """Calls ``POST /v1/images/generations`` once per requested image."""

    name = "siliconflow"

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        model: str,
        image_size: str = "1024x1024",
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model
        self.image_size = image_size
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def validate(self) -> None:
        # Misconfiguration is reported as a 4xx so the queue never retries it
        if not self.api_key:
            raise SiliconFlowAPIError(
                401, "SiliconFlow authentication failed: SILICONFLOW_API_KEY is not set"
            )
        if not self.endpoint:
            raise SiliconFlowAPIError(400, "SiliconFlow API endpoint is not configured")

    def _request_body(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "prompt": prompt,
            "image_size": self.image_size,
            "batch_size": 1,
            "num_inference_steps": 20,
            "guidance_scale": 7.5,
            "negative_prompt": "",
        }

    async def _generate(
        self, prompt: str, count: int, token: CancellationToken
    ) -> AsyncGenerator[str, None]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            headers=headers,
            transport=self._transport,
        ) as client:
            for i in range(count):
                token.raise_if_cancelled()
                try:
                    resp = await client.post(self.endpoint, json=self._request_body(prompt))
                except httpx.TimeoutException as exc:
                    raise SiliconFlowAPIError(None, f"SiliconFlow request timed out: {exc}") from exc
                except httpx.TransportError as exc:
                    raise SiliconFlowAPIError(None, f"SiliconFlow network error: {exc}") from exc

                if resp.is_error:
                    raise SiliconFlowAPIError(
                        resp.status_code,
                        f"SiliconFlow API error: {resp.status_code} - {_error_detail(resp)}",
                    )

                url = _first_image_url(resp)
                logger.debug("Image %d/%d generated by %s", i + 1, count, self.model)
                yield url


def _error_detail(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.reason_phrase or resp.text[:200]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("message"):
            return str(data["message"])
    return resp.reason_phrase


def _first_image_url(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError as exc:
        raise SiliconFlowAPIError(resp.status_code, "SiliconFlow returned invalid JSON") from exc

    images = data.get("images") if isinstance(data, dict) else None
    if not images or not isinstance(images[0], dict) or not images[0].get("url"):
        raise SiliconFlowAPIError(
            resp.status_code, f"Unexpected SiliconFlow response: {str(data)[:200]}"
        )
    return images[0]["url"]
