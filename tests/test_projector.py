# tests/test_projector.py

from __future__ import annotations

import pytest

from taskwatch.core.errors import ProviderFailure
from taskwatch.engine.poller import Degraded, Failed, Idle, Observing, Terminal
from taskwatch.engine.projector import (
    ProgressBar,
    ProgressView,
    StageLabels,
    failure_message,
    percent_complete,
    project,
    title_for,
)
from taskwatch.status.status_models import StageStatus, TaskStatus

from .fakes import make_snapshot


def test_stage_not_started_is_zero_percent() -> None:
    # Not "done": the stage simply has not happened yet.
    assert percent_complete(StageStatus(pending=0, pending_bytes=0, total=0)) == 0


@pytest.mark.parametrize("total", [1, 7, 1000])
def test_no_pending_items_is_hundred_percent(total: int) -> None:
    assert percent_complete(StageStatus(pending=0, total=total)) == 100


@pytest.mark.parametrize(
    ("pending", "total", "expected"),
    [
        (1, 3, 66.66),  # 66.666... floors, never rounds up
        (2, 3, 33.33),
        (6, 7, 14.28),
        (1, 10_000, 99.99),
        (1, 1_000_000, 99.99),
        (5, 10, 50.0),
    ],
)
def test_percent_is_floored_to_hundredths(pending: int, total: int, expected: float) -> None:
    assert percent_complete(StageStatus(pending=pending, total=total)) == expected


def test_percent_is_bounded_and_monotonic() -> None:
    total = 37
    previous = -1.0
    for pending in range(total, -1, -1):
        pct = percent_complete(StageStatus(pending=pending, total=total))
        assert 0 <= pct <= 100
        assert pct >= previous
        previous = pct
    assert previous == 100


def test_percent_never_reaches_hundred_while_items_pending() -> None:
    assert percent_complete(StageStatus(pending=1, total=10**9)) < 100


@pytest.mark.parametrize(
    ("status", "title"),
    [
        ("PENDING", "Pending..."),
        ("PROCESSING", "Processing..."),
        ("COMPLETE", "Complete"),
        ("FAILED", "Failed"),
        (TaskStatus.PROCESSING, "Processing..."),
    ],
)
def test_title_for(status, title: str) -> None:
    assert title_for(status) == title


def test_title_for_unknown_status() -> None:
    with pytest.raises(ValueError):
        title_for("RUNNING")


def test_failure_message_is_prefixed() -> None:
    assert failure_message(ProviderFailure("Invalid task id: 42")) == "Failed to get status: Invalid task id: 42"
    assert failure_message(TimeoutError()) == "Failed to get status: TimeoutError"


def test_stage_labels_build() -> None:
    labels = StageLabels.build(hidden=["Reduce"], overrides={"map": "Records"})

    assert labels == StageLabels(map="Records", reduce=None, summarize="Summarize")
    assert labels.visible() == [("map", "Records"), ("summarize", "Summarize")]


def test_stage_labels_reject_unknown_stage() -> None:
    with pytest.raises(ValueError):
        StageLabels.build(hidden=["shuffle"])
    with pytest.raises(ValueError):
        StageLabels.build(overrides={"output": "Out"})


def test_project_processing_shows_visible_stage_bars() -> None:
    snapshot = make_snapshot(
        TaskStatus.PROCESSING,
        map=StageStatus(pending=0, total=4),
        reduce=StageStatus(pending=1, total=4),
        summarize=StageStatus(),
    )

    view = project(Observing(snapshot), StageLabels(summarize=None))

    assert view == ProgressView(
        title="Processing...",
        bars=(ProgressBar("Map", 100.0), ProgressBar("Reduce", 75.0)),
    )


def test_project_hiding_every_stage_leaves_title_only() -> None:
    view = project(Observing(make_snapshot()), StageLabels(map=None, reduce=None, summarize=None))
    assert view == ProgressView(title="Processing...")


def test_project_pending_shows_single_indeterminate_bar() -> None:
    view = project(Observing(make_snapshot(TaskStatus.PENDING)))

    assert view is not None
    assert view.title == "Pending..."
    assert view.bars == (ProgressBar(name="", percent=None),)


@pytest.mark.parametrize("status", [TaskStatus.COMPLETE, TaskStatus.FAILED])
def test_project_terminal_is_title_only(status: TaskStatus) -> None:
    view = project(Terminal(make_snapshot(status)))
    assert view == ProgressView(title=title_for(status))


def test_project_failed_is_error_view() -> None:
    view = project(Failed(ProviderFailure("Unexpected response body format.")))

    assert view is not None
    assert view.is_error
    assert view.error == "Failed to get status: Unexpected response body format."


def test_project_idle_and_degraded_do_not_change_display() -> None:
    assert project(Idle()) is None
    assert project(Degraded(ProviderFailure("x"), 1)) is None


def test_project_unknown_state() -> None:
    with pytest.raises(TypeError):
        project("observing")  # type: ignore[arg-type]
