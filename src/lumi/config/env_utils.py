"""Utilities for reading the ~/.lumi/.env file."""

from __future__ import annotations

from pathlib import Path

from lumi.config.constants import ENV_FILE


def read_env_file(env_path: Path | None = None) -> dict[str, str]:
    """Parse the .env file and return key-value pairs.

    Strips inline comments (``# ...``), surrounding quotes and whitespace.
    """
    if env_path is None:
        env_path = ENV_FILE

    result: dict[str, str] = {}
    if not env_path.exists():
        return result

    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, _, v = line.partition("=")
            k = k.strip()
            if " #" in v:
                v = v[: v.index(" #")]
            result[k] = v.strip().strip("'\"")
    except OSError:
        pass

    return result
