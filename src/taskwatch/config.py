# src/taskwatch/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; the status URL can come from the CLI instead.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

ENV_PREFIX = "TASKWATCH"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except ImportError:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_optional(name: str) -> Optional[str]:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Path

    # ---- Status provider ----
    status_url: Optional[str]
    http_timeout_seconds: float

    # ---- Polling ----
    interval_ms: int
    max_consecutive_errors: int

    # ---- Display ----
    map_label: str = "Map"
    reduce_label: str = "Reduce"
    summarize_label: str = "Summarize"
    hidden_stages: List[str] = field(default_factory=list)

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskwatch") or "taskwatch"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_dir = _env_path(_k("LOG_DIR"), Path(".local/taskwatch"))

        status_url = _env_optional(_k("STATUS_URL"))
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 10.0)

        interval_ms = _env_int(_k("INTERVAL_MS"), 1000)
        # 0 (or negative) means: never give up.
        max_consecutive_errors = _env_int(_k("MAX_CONSECUTIVE_ERRORS"), 0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_dir=log_dir,
            status_url=status_url,
            http_timeout_seconds=http_timeout_seconds,
            interval_ms=interval_ms,
            max_consecutive_errors=max_consecutive_errors,
            map_label=_env(_k("MAP_LABEL"), "Map"),
            reduce_label=_env(_k("REDUCE_LABEL"), "Reduce"),
            summarize_label=_env(_k("SUMMARIZE_LABEL"), "Summarize"),
            hidden_stages=[s.lower() for s in _env_list(_k("HIDDEN_STAGES"), [])],
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
