# tests/test_console_renderer.py

from __future__ import annotations

import io
import logging

from taskwatch.core.errors import ProviderFailure
from taskwatch.engine.poller import Degraded, Failed, Idle, Observing, Terminal
from taskwatch.engine.projector import ProgressBar, ProgressView, StageLabels
from taskwatch.render.console_renderer import ConsoleRenderer, render_lines
from taskwatch.status.status_models import StageStatus, TaskStatus

from .fakes import make_snapshot


class _TTY(io.StringIO):
    def isatty(self) -> bool:
        return True


def test_render_lines_for_determinate_bars() -> None:
    view = ProgressView(
        title="Processing...",
        bars=(ProgressBar("Map", 50.0), ProgressBar("Summarize", 0.0)),
    )

    lines = render_lines(view, width=10)

    assert lines == [
        "Processing...",
        "Map       [#####.....]  50.00%",
        "Summarize [..........]   0.00%",
    ]


def test_render_lines_for_indeterminate_bar() -> None:
    view = ProgressView(title="Pending...", bars=(ProgressBar("", None),))
    assert render_lines(view, width=9) == ["Pending...", "[   <=>   ]"]


def test_render_lines_for_error() -> None:
    assert render_lines(ProgressView(error="Failed to get status: boom")) == ["Failed to get status: boom"]


def test_renderer_draws_each_new_frame() -> None:
    out = io.StringIO()
    renderer = ConsoleRenderer(StageLabels(reduce=None, summarize=None), stream=out, width=10)

    renderer(Idle())
    renderer(Observing(make_snapshot(map=StageStatus(pending=2, total=4))))
    renderer(Observing(make_snapshot(map=StageStatus(pending=2, total=4))))  # unchanged, skipped
    renderer(Terminal(make_snapshot(TaskStatus.COMPLETE)))

    assert out.getvalue() == "Processing...\nMap [#####.....]  50.00%\nComplete\n"


def test_renderer_logs_degraded_without_drawing(caplog) -> None:
    out = io.StringIO()
    renderer = ConsoleRenderer(stream=out)

    with caplog.at_level(logging.WARNING, logger="taskwatch"):
        renderer(Degraded(ProviderFailure("timeout"), 2))

    assert out.getvalue() == ""
    assert "timeout" in caplog.text


def test_renderer_shows_prefixed_error_on_failed() -> None:
    out = io.StringIO()
    renderer = ConsoleRenderer(stream=out)

    renderer(Failed(ProviderFailure("Unexpected response code: 500 Internal Server Error.")))

    assert out.getvalue() == "Failed to get status: Unexpected response code: 500 Internal Server Error.\n"
    assert renderer.last_view is not None and renderer.last_view.is_error


def test_renderer_redraws_in_place_on_tty() -> None:
    out = _TTY()
    renderer = ConsoleRenderer(StageLabels(map=None, reduce=None, summarize=None), stream=out)

    renderer(Observing(make_snapshot(TaskStatus.PENDING)))
    renderer(Terminal(make_snapshot(TaskStatus.COMPLETE)))

    # Pending frame is two lines: title + indeterminate bar.
    assert out.getvalue().endswith("\033[1A\033[2K\033[1A\033[2K\rComplete\n")


def test_renderer_draws_below_degraded_warning_on_tty() -> None:
    out = _TTY()
    renderer = ConsoleRenderer(StageLabels(map=None, reduce=None, summarize=None), stream=out)

    renderer(Observing(make_snapshot(TaskStatus.PENDING)))
    renderer(Degraded(ProviderFailure("timeout"), 1))
    renderer(Terminal(make_snapshot(TaskStatus.COMPLETE)))

    # The warning sits between the frames, so nothing above it is erased.
    assert "\033[1A" not in out.getvalue()
    assert out.getvalue().endswith("Complete\n")
