"""Pydantic models for configuration sub-sections."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from lumi.config.constants import (
    DEFAULT_HISTORY_SIZE,
    DEFAULT_HOST,
    DEFAULT_IMAGES_PER_TASK,
    DEFAULT_MAX_CONCURRENT,
    DEFAULT_MAX_QUEUE_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PORT,
    DEFAULT_RATE_LIMIT_DELAY_SECONDS,
    DEFAULT_RETRY_BASE_DELAY_SECONDS,
    DEFAULT_TASK_TIMEOUT_SECONDS,
    PROVIDER_MOCK,
    PROVIDER_SILICONFLOW,
    SILICONFLOW_ENDPOINT,
    SILICONFLOW_MODEL,
)


class QueueConfig(BaseModel):
    """Task queue limits. Fixed once a manager is constructed."""

    max_concurrent: int = Field(default=DEFAULT_MAX_CONCURRENT, ge=1)
    task_timeout_seconds: float = Field(default=DEFAULT_TASK_TIMEOUT_SECONDS, gt=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    retry_base_delay_seconds: float = Field(default=DEFAULT_RETRY_BASE_DELAY_SECONDS, gt=0)
    rate_limit_delay_seconds: float = Field(default=DEFAULT_RATE_LIMIT_DELAY_SECONDS, gt=0)
    max_queue_size: int = Field(default=DEFAULT_MAX_QUEUE_SIZE, ge=1)
    history_size: int = Field(default=DEFAULT_HISTORY_SIZE, ge=1)
    images_per_task: int = Field(default=DEFAULT_IMAGES_PER_TASK, ge=1)
    recover_on_startup: bool = True

    @model_validator(mode="after")
    def validate_backoff_bases(self) -> "QueueConfig":
        if self.rate_limit_delay_seconds <= self.retry_base_delay_seconds:
            raise ValueError(
                f"rate_limit_delay_seconds ({self.rate_limit_delay_seconds}) must be "
                f"greater than retry_base_delay_seconds ({self.retry_base_delay_seconds})"
            )
        return self


class ProviderConfig(BaseModel):
    """Which image provider to call and how."""

    provider: str = PROVIDER_MOCK  # mock | siliconflow
    api_key: str = Field(default="", exclude=True)
    endpoint: str = SILICONFLOW_ENDPOINT
    model: str = SILICONFLOW_MODEL
    image_size: str = "1024x1024"
    request_timeout_seconds: float = 60.0
    mock_delay_seconds: float = 0.5

    @model_validator(mode="after")
    def validate_provider(self) -> "ProviderConfig":
        if self.provider not in (PROVIDER_MOCK, PROVIDER_SILICONFLOW):
            raise ValueError(f"Unknown image provider: {self.provider}")
        return self


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


# Maps (nested_key_tuple) -> env_var_name for secret fields.
SECRET_FIELD_ENV_MAP: dict[tuple[str, ...], str] = {
    ("provider", "api_key"): "SILICONFLOW_API_KEY",
}
