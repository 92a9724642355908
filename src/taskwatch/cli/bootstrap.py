# src/taskwatch/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- applies command-line overrides on top of the loaded settings,
- wires the concrete status provider, engine and renderer together.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, TextIO

from ..config import Settings, get_settings
from ..core.errors import InvalidConfiguration
from ..core.ports import StatusProvider
from ..engine.poller import PollingEngine
from ..engine.projector import StageLabels
from ..render.console_renderer import ConsoleRenderer
from ..status.providers import HttpStatusProvider

logger = logging.getLogger(__name__)


def apply_overrides(settings: Settings, **overrides: Any) -> Settings:
    """Return a copy of settings with every non-None override applied."""
    changes = {k: v for k, v in overrides.items() if v is not None}
    if not changes:
        return settings
    return dataclasses.replace(settings, **changes)


def build_labels(settings: Any, extra_labels: dict[str, str] | None = None) -> StageLabels:
    overrides = {
        "map": settings.map_label,
        "reduce": settings.reduce_label,
        "summarize": settings.summarize_label,
    }
    overrides.update(extra_labels or {})
    try:
        return StageLabels.build(hidden=list(settings.hidden_stages), overrides=overrides)
    except ValueError as exc:
        raise InvalidConfiguration(str(exc)) from exc


def create_provider(settings: Any) -> HttpStatusProvider:
    url = getattr(settings, "status_url", None)
    if not url:
        raise InvalidConfiguration("No status URL configured (use --url or TASKWATCH_STATUS_URL)")
    return HttpStatusProvider(url, timeout_seconds=settings.http_timeout_seconds)


def create_engine(task_id: str, provider: StatusProvider, settings: Any) -> PollingEngine:
    return PollingEngine(
        task_id,
        provider,
        interval_ms=int(settings.interval_ms),
        max_consecutive_errors=int(settings.max_consecutive_errors),
    )


def create_watch(
    task_id: str,
    *,
    settings: Any = None,
    provider: StatusProvider | None = None,
    extra_labels: dict[str, str] | None = None,
    stream: TextIO | None = None,
) -> tuple[PollingEngine, ConsoleRenderer]:
    """
    Build an engine with a console renderer already subscribed.

    Keeping settings and provider injectable makes this easy to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()
    if provider is None:
        provider = create_provider(settings)

    renderer = ConsoleRenderer(build_labels(settings, extra_labels), stream=stream)
    engine = create_engine(task_id, provider, settings)
    engine.subscribe(renderer)
    return engine, renderer
