# src/taskwatch/engine/poller.py

from __future__ import annotations

"""
Polling engine.

A small loop that:
- fetches a status snapshot via an injected provider,
- waits `interval_ms` between the end of one fetch and the start of the next,
- tolerates provider failures up to an optional consecutive-error threshold,
- stops on its own once the task reports COMPLETE or FAILED.

Every transition is pushed to subscribers as an EngineState value.
Rendering belongs to the subscriber, not the engine.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Callable, Union

from ..core.errors import InvalidConfiguration
from ..core.ports import StateListener, StatusProvider
from ..status.status_models import StatusSnapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Idle:
    """Engine created but not started."""


@dataclass(slots=True, frozen=True)
class Observing:
    """Latest successful snapshot; the task is still running."""

    snapshot: StatusSnapshot


@dataclass(slots=True, frozen=True)
class Terminal:
    """The task reported COMPLETE or FAILED. Nothing more will be fetched."""

    snapshot: StatusSnapshot


@dataclass(slots=True, frozen=True)
class Degraded:
    """A fetch failed; polling continues."""

    error: BaseException
    consecutive_errors: int


@dataclass(slots=True, frozen=True)
class Failed:
    """Too many consecutive fetch failures. Polling stopped for good."""

    error: BaseException


EngineState = Union[Idle, Observing, Terminal, Degraded, Failed]

_CLOSED = object()


class EngineStateStream:
    """
    Async iterator over the states an engine emits.

    Registers on construction, so nothing emitted after engine.states() is missed.
    Ends when the engine closes (terminal, failed or stopped).
    """

    def __init__(self, engine: PollingEngine) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._unsubscribe = engine.subscribe(self._queue.put_nowait)
        engine._on_close(self._close)
        if engine.closed:
            self._close()

    def _close(self) -> None:
        self._unsubscribe()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[EngineState]:
        return self

    async def __anext__(self) -> EngineState:
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep returning the end marker on repeated calls.
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


class PollingEngine:
    """
    Poll one task until it finishes, the error threshold is hit, or stop() is called.

    Engines are single-use: start() may be called once. To poll again, build a new one.
    """

    def __init__(
        self,
        task_id: str,
        fetch_status: StatusProvider,
        *,
        interval_ms: int,
        max_consecutive_errors: int | None = None,
    ) -> None:
        if not isinstance(task_id, str) or not task_id.strip():
            raise InvalidConfiguration(f"task_id must be a non-empty string, got {task_id!r}")
        if not callable(fetch_status):
            raise InvalidConfiguration("fetch_status must be callable")
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
            raise InvalidConfiguration(f"interval_ms must be a positive integer, got {interval_ms!r}")
        if max_consecutive_errors is not None and (
            isinstance(max_consecutive_errors, bool) or not isinstance(max_consecutive_errors, int)
        ):
            raise InvalidConfiguration(
                f"max_consecutive_errors must be an integer or None, got {max_consecutive_errors!r}"
            )

        self.task_id = task_id
        self.interval_ms = interval_ms
        # None or <= 0: retry forever.
        self.max_consecutive_errors = (
            max_consecutive_errors if max_consecutive_errors and max_consecutive_errors > 0 else None
        )
        self._fetch_status = fetch_status

        self._state: EngineState = Idle()
        self._consecutive_errors = 0
        self._listeners: list[StateListener] = []
        self._close_callbacks: list[Callable[[], None]] = []

        self._started = False
        self._closed = False
        self._stop_event: asyncio.Event | None = None
        self._runner: asyncio.Task[None] | None = None

    # ---- observers ----

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def consecutive_errors(self) -> int:
        return self._consecutive_errors

    @property
    def running(self) -> bool:
        return self._started and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register listener for future states. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def states(self) -> EngineStateStream:
        return EngineStateStream(self)

    def _on_close(self, callback: Callable[[], None]) -> None:
        self._close_callbacks.append(callback)

    # ---- lifecycle ----

    def start(self) -> None:
        """Begin polling; the first fetch is issued immediately. Needs a running event loop."""
        if self._started or self._closed:
            raise InvalidConfiguration(f"engine for task {self.task_id} was already used; create a new one")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise InvalidConfiguration("start() must be called from a running event loop") from None

        self._started = True
        self._stop_event = asyncio.Event()
        self._runner = loop.create_task(self._run(), name=f"taskwatch-poll-{self.task_id}")
        logger.info("Polling task %s every %d ms", self.task_id, self.interval_ms)

    def stop(self) -> None:
        """
        Stop polling. Safe to call any number of times, in any state.

        A fetch already in flight is not aborted; its result is dropped.
        """
        if self._stop_event is not None and not self._stop_event.is_set():
            logger.info("Stopping poll of task %s", self.task_id)
            self._stop_event.set()
        self._close()

    async def wait_closed(self) -> None:
        """Wait until the poll loop has exited."""
        if self._runner is not None:
            await asyncio.shield(self._runner)

    # ---- loop ----

    def _stopped(self) -> bool:
        return self._closed or (self._stop_event is not None and self._stop_event.is_set())

    async def _run(self) -> None:
        assert self._stop_event is not None
        stop_event = self._stop_event

        try:
            while not self._stopped():
                try:
                    snapshot = await self._fetch_status(self.task_id)
                except Exception as exc:
                    if self._stopped():
                        logger.debug("Dropping fetch error after stop task_id=%s", self.task_id)
                        break
                    if self._on_error(exc):
                        break
                else:
                    if self._stopped():
                        logger.debug("Dropping snapshot after stop task_id=%s", self.task_id)
                        break
                    if self._on_snapshot(snapshot):
                        break

                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self.interval_ms / 1000)
                except asyncio.TimeoutError:
                    continue
        finally:
            # Also reached on outside cancellation, so states() consumers are released.
            self._close()

    def _on_snapshot(self, snapshot: StatusSnapshot) -> bool:
        """Handle a successful fetch. Returns True when polling is over."""
        self._consecutive_errors = 0

        if snapshot.is_terminal:
            logger.info("Task %s finished with status %s", self.task_id, snapshot.status.value)
            self._emit(Terminal(snapshot))
            return True

        logger.debug(
            "Task %s status=%s stage=%s",
            self.task_id,
            snapshot.status.value,
            snapshot.stage.value if snapshot.stage else None,
        )
        self._emit(Observing(snapshot))
        return False

    def _on_error(self, exc: Exception) -> bool:
        """Handle a failed fetch. Returns True when polling is over."""
        self._consecutive_errors += 1
        count = self._consecutive_errors

        if self.max_consecutive_errors is not None and count >= self.max_consecutive_errors:
            logger.error(
                "Giving up on task %s after %d consecutive errors: %s", self.task_id, count, exc
            )
            self._emit(Failed(exc))
            return True

        logger.warning("Status fetch failed task_id=%s errors=%d: %s", self.task_id, count, exc)
        self._emit(Degraded(exc, count))
        return False

    def _emit(self, state: EngineState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed task_id=%s", self.task_id)

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        callbacks, self._close_callbacks = self._close_callbacks, []
        for cb in callbacks:
            try:
                cb()
            except Exception:
                logger.exception("Close callback failed task_id=%s", self.task_id)
