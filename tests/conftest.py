# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="taskwatch",
        log_level="WARNING",
        log_dir=tmp_path / "logs",
        status_url="https://status.example.com/status?query=1",
        http_timeout_seconds=1.0,
        interval_ms=1,
        max_consecutive_errors=0,
        map_label="Map",
        reduce_label="Reduce",
        summarize_label="Summarize",
        hidden_stages=[],
    )
