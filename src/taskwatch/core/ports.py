# src/taskwatch/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the engine.

The engine depends on Protocols instead of concrete implementations, so the status
transport and the rendering surface stay swappable and tests can use plain fakes.
"""

from typing import TYPE_CHECKING, Any, Awaitable, Protocol

if TYPE_CHECKING:
    from ..status.status_models import StatusSnapshot


class StatusProvider(Protocol):
    """
    Fetch one snapshot for a task.

    Implementations normalize every failure (transport, timeout, bad body, endpoint
    error) into ProviderFailure with a human-readable message.
    """

    def __call__(self, task_id: str) -> Awaitable[StatusSnapshot]: ...


class StateListener(Protocol):
    """Receives every EngineState the engine emits, in order."""

    def __call__(self, state: Any) -> None: ...
