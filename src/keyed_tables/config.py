"""Settings for the engine and the interactive shell."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

DEFAULT_NULL_SENTINEL = "\x00NULL\x00"


@dataclass(slots=True)
class Settings:
    null_sentinel: str = DEFAULT_NULL_SENTINEL
    max_rows: int = 0  # 0 means unlimited
    history_file: str = "~/.ksql_history"
    redis_url: str | None = None  # None means a private in-process server

    def history_path(self) -> Path:
        return Path(self.history_file).expanduser()


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid settings file {path}: {e}") from e


def load_settings(path: str | Path) -> Settings:
    """Read configuration from *path* and return structured settings."""

    raw = _load_yaml(Path(path))
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")

    settings = Settings(**raw)
    if not isinstance(settings.max_rows, int) or settings.max_rows < 0:
        raise ValueError("max_rows must be a non-negative integer")
    if not settings.null_sentinel:
        raise ValueError("null_sentinel must be a non-empty string")
    if settings.redis_url is not None and not isinstance(settings.redis_url, str):
        raise ValueError("redis_url must be a string")
    return settings
