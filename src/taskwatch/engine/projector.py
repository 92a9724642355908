# src/taskwatch/engine/projector.py

from __future__ import annotations

"""
Progress projection: pure functions from engine states to something a renderer can draw.

No I/O and no state here; renderers call project() for each EngineState they receive.
"""

from dataclasses import dataclass, field

from ..status.status_models import StageStatus, StatusSnapshot, TaskStatus
from .poller import Degraded, EngineState, Failed, Idle, Observing, Terminal

FAILURE_PREFIX = "Failed to get status: "

STAGE_NAMES = ("map", "reduce", "summarize")


def percent_complete(stage: StageStatus) -> float:
    """
    Completion of one stage in percent, floored to two decimals.

    total == 0 means the stage has not started (or does not apply) and yields 0,
    not 100. Flooring keeps the value from ever overshooting 100.
    """
    if stage.total == 0:
        return 0.0
    if stage.pending == 0:
        return 100.0
    hundredths = (10_000 * (stage.total - stage.pending)) // stage.total
    return hundredths / 100


def title_for(status: TaskStatus | str) -> str:
    """'PROCESSING' -> 'Processing...', 'COMPLETE' -> 'Complete'."""
    status = TaskStatus(status)
    word = status.value
    title = word[:1].upper() + word[1:].lower()
    if status in (TaskStatus.PENDING, TaskStatus.PROCESSING):
        title += "..."
    return title


def failure_message(error: BaseException) -> str:
    # The prefix tells the user we failed to *observe* the task, not that the task failed.
    message = str(error) or error.__class__.__name__
    return FAILURE_PREFIX + message


@dataclass(slots=True, frozen=True)
class StageLabels:
    """
    Display names per stage. None hides that stage's progress bar.

    Hiding is display-only; counters and terminal detection are unaffected.
    """

    map: str | None = "Map"
    reduce: str | None = "Reduce"
    summarize: str | None = "Summarize"

    @classmethod
    def build(
        cls,
        *,
        hidden: tuple[str, ...] | list[str] = (),
        overrides: dict[str, str] | None = None,
    ) -> StageLabels:
        """Start from the defaults, rename stages from overrides, then hide stages in hidden."""
        values: dict[str, str | None] = {name: getattr(cls(), name) for name in STAGE_NAMES}
        for name, label in (overrides or {}).items():
            key = name.strip().lower()
            if key not in values:
                raise ValueError(f"Unknown stage {name!r}; expected one of {', '.join(STAGE_NAMES)}")
            values[key] = label
        for name in hidden:
            key = name.strip().lower()
            if key not in values:
                raise ValueError(f"Unknown stage {name!r}; expected one of {', '.join(STAGE_NAMES)}")
            values[key] = None
        return cls(**values)

    def visible(self) -> list[tuple[str, str]]:
        """(stage attribute, label) pairs for stages that are shown, in job order."""
        out: list[tuple[str, str]] = []
        for name in STAGE_NAMES:
            label = getattr(self, name)
            if label is not None:
                out.append((name, label))
        return out


@dataclass(slots=True, frozen=True)
class ProgressBar:
    name: str
    # None -> indeterminate
    percent: float | None


@dataclass(slots=True, frozen=True)
class ProgressView:
    title: str = ""
    bars: tuple[ProgressBar, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


def project_snapshot(snapshot: StatusSnapshot, labels: StageLabels | None = None) -> ProgressView:
    labels = labels or StageLabels()
    title = title_for(snapshot.status)

    if snapshot.is_terminal:
        return ProgressView(title=title)
    if snapshot.status == TaskStatus.PENDING:
        return ProgressView(title=title, bars=(ProgressBar(name="", percent=None),))

    bars = tuple(
        ProgressBar(name=label, percent=percent_complete(getattr(snapshot, name)))
        for name, label in labels.visible()
    )
    return ProgressView(title=title, bars=bars)


def project(state: EngineState, labels: StageLabels | None = None) -> ProgressView | None:
    """
    Map an engine state to a view.

    Returns None when the display should not change (Idle, Degraded).
    """
    if isinstance(state, (Observing, Terminal)):
        return project_snapshot(state.snapshot, labels)
    if isinstance(state, Failed):
        return ProgressView(error=failure_message(state.error))
    if isinstance(state, (Idle, Degraded)):
        return None
    raise TypeError(f"Unknown engine state: {state!r}")
