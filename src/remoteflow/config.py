from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from .runtime import get_api_max_attempts, get_api_timeout

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TARGET_DIR = os.path.join(".github", "workflows")


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    timeout: float = 30.0
    max_attempts: int = 4
    target_dir: str = DEFAULT_TARGET_DIR


def get_config_path(custom_path=None):
    if custom_path:
        return custom_path
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return os.path.join(xdg_config_home, "remoteflow", "config.yaml")


def read_config(custom_path=None) -> dict[str, Any]:
    import yaml

    config_path = get_config_path(custom_path)
    try:
        with open(config_path, "r", encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except FileNotFoundError:
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must be a mapping: {config_path}")
    return data


def _coerce_positive(value: Any, cast, default):
    if value is None:
        return default
    try:
        parsed = cast(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def load_settings(custom_path=None) -> Settings:
    """Merge the config file with environment overrides.

    Environment variables win over the file: ``GITHUB_API_URL``,
    ``REMOTEFLOW_API_TIMEOUT`` and ``REMOTEFLOW_API_MAX_ATTEMPTS``.
    """
    cfg = read_config(custom_path)

    api_url = (os.environ.get("GITHUB_API_URL") or "").strip()
    if not api_url:
        api_url = str(cfg.get("api_url") or DEFAULT_API_URL)

    timeout = get_api_timeout()
    if not os.environ.get("REMOTEFLOW_API_TIMEOUT"):
        timeout = _coerce_positive(cfg.get("timeout"), float, timeout)

    max_attempts = get_api_max_attempts()
    if not os.environ.get("REMOTEFLOW_API_MAX_ATTEMPTS"):
        max_attempts = _coerce_positive(cfg.get("max_attempts"), int, max_attempts)

    target_dir = str(cfg.get("target_dir") or DEFAULT_TARGET_DIR)

    return Settings(
        api_url=api_url.rstrip("/"),
        timeout=timeout,
        max_attempts=max_attempts,
        target_dir=target_dir,
    )
