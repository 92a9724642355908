# src/taskwatch/__init__.py

"""Poll a map/reduce task's status and render its progress."""

from __future__ import annotations

from .core.errors import InvalidConfiguration, MalformedResponse, ProviderFailure, TaskWatchError
from .engine.poller import Degraded, EngineState, Failed, Idle, Observing, PollingEngine, Terminal
from .engine.projector import StageLabels, percent_complete, project, title_for
from .status.status_models import MapReduceStage, StageStatus, StatusSnapshot, TaskStatus

__all__ = [
    "Degraded",
    "EngineState",
    "Failed",
    "Idle",
    "InvalidConfiguration",
    "MalformedResponse",
    "MapReduceStage",
    "Observing",
    "PollingEngine",
    "ProviderFailure",
    "StageLabels",
    "StageStatus",
    "StatusSnapshot",
    "TaskStatus",
    "TaskWatchError",
    "Terminal",
    "percent_complete",
    "project",
    "title_for",
]
