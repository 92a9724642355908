# src/taskwatch/render/console_renderer.py

from __future__ import annotations

import logging
import sys
from typing import TextIO

from ..engine.poller import Degraded, EngineState
from ..engine.projector import ProgressBar, ProgressView, StageLabels, project

logger = logging.getLogger(__name__)

BAR_WIDTH = 30
INDETERMINATE = "<=>"


def _bar_line(bar: ProgressBar, *, width: int, name_width: int) -> str:
    if bar.percent is None:
        # Fixed marker in the middle; the console has no animation loop.
        pad = max(0, (width - len(INDETERMINATE)) // 2)
        body = "[" + (" " * pad + INDETERMINATE).ljust(width) + "]"
    else:
        filled = int(width * bar.percent / 100)
        body = "[" + "#" * filled + "." * (width - filled) + f"] {bar.percent:6.2f}%"

    if name_width == 0:
        return body
    return f"{bar.name.ljust(name_width)} {body}"


def render_lines(view: ProgressView, *, width: int = BAR_WIDTH) -> list[str]:
    """Text lines for one view: an error line, or a title followed by one line per bar."""
    if view.error is not None:
        return [view.error]

    name_width = max((len(b.name) for b in view.bars), default=0)
    return [view.title] + [_bar_line(b, width=width, name_width=name_width) for b in view.bars]


class ConsoleRenderer:
    """
    Engine subscriber that draws progress to a text stream.

    On a TTY the previous frame is overwritten in place; otherwise each frame is
    printed below the last one.
    """

    def __init__(
        self,
        labels: StageLabels | None = None,
        *,
        stream: TextIO | None = None,
        width: int = BAR_WIDTH,
    ) -> None:
        self.labels = labels or StageLabels()
        self.stream = stream if stream is not None else sys.stdout
        self.width = max(5, int(width))
        self.last_view: ProgressView | None = None
        self._drawn_lines = 0

    def _isatty(self) -> bool:
        try:
            return bool(self.stream.isatty())
        except (AttributeError, ValueError):
            return False

    def __call__(self, state: EngineState) -> None:
        if isinstance(state, Degraded):
            logger.warning(
                "Could not get status (%d in a row), retrying: %s",
                state.consecutive_errors,
                state.error,
            )
            # The warning went to the same terminal; start the next frame below it.
            self._drawn_lines = 0
            return

        view = project(state, self.labels)
        if view is None or view == self.last_view:
            return
        self.draw(view)

    def draw(self, view: ProgressView) -> None:
        lines = render_lines(view, width=self.width)

        if self._isatty() and self._drawn_lines:
            # Move up over the previous frame and clear it.
            self.stream.write("\033[1A\033[2K" * self._drawn_lines + "\r")

        self.stream.write("\n".join(lines) + "\n")
        self.stream.flush()

        self._drawn_lines = len(lines)
        self.last_view = view
