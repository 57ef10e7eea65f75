"""Paths and default values used across the project."""

from pathlib import Path

# Base directory for all lumi data
LUMI_HOME = Path.home() / ".lumi"

CONFIG_FILE = LUMI_HOME / "config.json"
ENV_FILE = LUMI_HOME / ".env"
DATA_DIR = LUMI_HOME / "data"
TASKS_FILE = DATA_DIR / "tasks.json"

# Server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

# Queue defaults
DEFAULT_MAX_CONCURRENT = 3
DEFAULT_TASK_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY_SECONDS = 2.0
DEFAULT_RATE_LIMIT_DELAY_SECONDS = 30.0
DEFAULT_MAX_QUEUE_SIZE = 100
DEFAULT_HISTORY_SIZE = 100
DEFAULT_IMAGES_PER_TASK = 4

# Prompt limits
MIN_PROMPT_LENGTH = 2
MAX_PROMPT_LENGTH = 500

# Providers
PROVIDER_MOCK = "mock"
PROVIDER_SILICONFLOW = "siliconflow"
SILICONFLOW_ENDPOINT = "https://api.siliconflow.cn/v1/images/generations"
SILICONFLOW_MODEL = "Qwen/Qwen-Image"
