# src/taskwatch/core/errors.py

from __future__ import annotations


class TaskWatchError(Exception):
    """Base class for errors raised by taskwatch."""


class ProviderFailure(TaskWatchError):
    """
    A status fetch failed.

    Could be transient (network, timeout) or reported by the status endpoint itself.
    The message is meant to be shown to a human.
    """


class MalformedResponse(ProviderFailure):
    """The provider answered, but not with a valid envelope/snapshot."""


class InvalidConfiguration(TaskWatchError, ValueError):
    """The engine was misconfigured or misused. Never retried."""
