"""Central settings — loads from ~/.lumi/config.json + environment variables."""

from __future__ import annotations

import json
import os
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lumi.config.constants import CONFIG_FILE, ENV_FILE, TASKS_FILE
from lumi.config.env_utils import read_env_file
from lumi.config.models import (
    SECRET_FIELD_ENV_MAP,
    ProviderConfig,
    QueueConfig,
    ServerConfig,
)


def _deep_merge(base: dict, override: dict) -> dict:
    """Overlay ``override`` on ``base``, recursing where both sides hold a section."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Settings(BaseSettings):
    """All lumi configuration in one place.

    Priority (highest → lowest):
      1. Explicit constructor values
      2. Environment variables (LUMI_ prefix, ``__`` for nesting,
         e.g. ``LUMI_QUEUE__MAX_CONCURRENT=5``)
      3. .env file
      4. ~/.lumi/config.json
      5. Defaults defined here
    """

    model_config = SettingsConfigDict(
        env_prefix="LUMI_",
        env_nested_delimiter="__",
        env_file=(".env", str(ENV_FILE)),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    queue: QueueConfig = Field(default_factory=QueueConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    tasks_file: str = str(TASKS_FILE)

    @model_validator(mode="before")
    @classmethod
    def load_config_file(cls, values: dict) -> dict:
        """Merge config.json values as defaults (explicit values still override)."""
        if CONFIG_FILE.exists():
            try:
                file_data = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
                values = _deep_merge(file_data, {k: v for k, v in values.items() if v is not None})
            except (json.JSONDecodeError, OSError):
                pass

        cls._apply_env_to_secrets(values)
        return values

    @classmethod
    def _apply_env_to_secrets(cls, values: dict) -> None:
        """Populate secret fields from environment variables and the .env file."""
        env_file_vals = read_env_file()

        for key_path, env_var in SECRET_FIELD_ENV_MAP.items():
            val = os.environ.get(env_var) or env_file_vals.get(env_var)
            if not val:
                continue

            node = values
            for part in key_path[:-1]:
                current = node.get(part)
                if isinstance(current, dict):
                    node = current
                elif current is None:
                    node[part] = {}
                    node = node[part]
                else:
                    # Already a model instance: explicit config wins
                    node = None
                    break

            if node is not None and not node.get(key_path[-1]):
                node[key_path[-1]] = val

    def save(self) -> None:
        """Persist current settings to config.json (secrets are excluded)."""
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        CONFIG_FILE.write_text(json.dumps(data, indent=2), encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
