"""Persistent JSON config helpers.

Stores the daemon connection, container-to-host path mapping and polling
knobs. Malformed or missing config falls back to defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

from ..log import APP_NAME
from ..services.api import DEFAULT_BASE_URL

CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_STATUS_POLL_SECONDS = 1.0
DEFAULT_FETCH_WORKERS = 4


@dataclass
class AppConfig:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    path_map: dict[str, str] = field(default_factory=dict)
    status_poll_seconds: float = DEFAULT_STATUS_POLL_SECONDS
    fetch_workers: int = DEFAULT_FETCH_WORKERS

    def to_json(self) -> dict[str, object]:
        return {
            "api_key": self.api_key,
            "base_url": self.base_url,
            "path_map": dict(self.path_map),
            "status_poll_seconds": self.status_poll_seconds,
            "fetch_workers": self.fetch_workers,
        }


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = path or CONFIG_PATH
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object], path: Path | None = None) -> None:
    """Persist config data as pretty-printed JSON.

    Any filesystem/serialization error is ignored to keep runtime behavior
    non-fatal when config cannot be written.
    """
    config_path = path or CONFIG_PATH
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def _positive_number(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return default
    return float(value)


def _path_map(value: object) -> dict[str, str]:
    """Keep only string-to-string entries."""
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items() if isinstance(k, str) and isinstance(v, str) and k}


def parse_config(data: dict[str, object]) -> AppConfig:
    """Build an ``AppConfig`` from a raw dict, ignoring invalid fields."""
    api_key = data.get("api_key")
    base_url = data.get("base_url")
    workers = data.get("fetch_workers")
    return AppConfig(
        api_key=api_key if isinstance(api_key, str) else "",
        base_url=base_url.rstrip("/") if isinstance(base_url, str) and base_url.strip() else DEFAULT_BASE_URL,
        path_map=_path_map(data.get("path_map")),
        status_poll_seconds=_positive_number(data.get("status_poll_seconds"), DEFAULT_STATUS_POLL_SECONDS),
        fetch_workers=workers if isinstance(workers, int) and not isinstance(workers, bool) and workers > 0 else DEFAULT_FETCH_WORKERS,
    )


def load_app_config(
    path: Path | None = None,
    *,
    base_url: str | None = None,
    api_key: str | None = None,
) -> AppConfig:
    """Load the config file and apply command-line overrides."""
    config = parse_config(load_config(path))
    if base_url:
        config.base_url = base_url.rstrip("/")
    if api_key:
        config.api_key = api_key
    return config


def save_app_config(config: AppConfig, path: Path | None = None) -> None:
    """Merge ``config`` into the stored file, keeping unknown keys."""
    data = load_config(path)
    data.update(config.to_json())
    save_config(data, path)


__all__ = [
    "AppConfig",
    "CONFIG_PATH",
    "DEFAULT_CONFIG_PATH",
    "load_app_config",
    "load_config",
    "parse_config",
    "save_app_config",
    "save_config",
]
