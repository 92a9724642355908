# tests/test_config.py

from __future__ import annotations

from pathlib import Path

from taskwatch.config import Settings


def test_settings_defaults(monkeypatch) -> None:
    for name in (
        "TASKWATCH_STATUS_URL",
        "TASKWATCH_INTERVAL_MS",
        "TASKWATCH_MAX_CONSECUTIVE_ERRORS",
        "TASKWATCH_HIDDEN_STAGES",
        "TASKWATCH_MAP_LABEL",
        "TASKWATCH_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()

    assert s.status_url is None
    assert s.interval_ms == 1000
    assert s.max_consecutive_errors == 0
    assert s.map_label == "Map"
    assert s.hidden_stages == []
    assert s.log_dir == Path(".local/taskwatch")


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("TASKWATCH_STATUS_URL", " https://status.example.com/s ")
    monkeypatch.setenv("TASKWATCH_INTERVAL_MS", "250")
    monkeypatch.setenv("TASKWATCH_MAX_CONSECUTIVE_ERRORS", "4")
    monkeypatch.setenv("TASKWATCH_HIDDEN_STAGES", "Reduce, summarize")
    monkeypatch.setenv("TASKWATCH_MAP_LABEL", "Records")

    s = Settings.from_env()

    assert s.status_url == "https://status.example.com/s"
    assert s.interval_ms == 250
    assert s.max_consecutive_errors == 4
    assert s.hidden_stages == ["reduce", "summarize"]
    assert s.map_label == "Records"


def test_settings_ignore_unparseable_numbers(monkeypatch) -> None:
    monkeypatch.setenv("TASKWATCH_INTERVAL_MS", "soon")
    monkeypatch.setenv("TASKWATCH_HTTP_TIMEOUT_SECONDS", "slow")

    s = Settings.from_env()

    assert s.interval_ms == 1000
    assert s.http_timeout_seconds == 10.0
