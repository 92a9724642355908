# src/taskwatch/status/envelope.py

from __future__ import annotations

"""
Response envelope used by remote status endpoints.

    {"success": true,  "status": {...snapshot...}}
    {"success": false, "message": "..."}

A boolean flag is used instead of HTTP status codes because some hosting platforms
do not let the endpoint control the response code.

Client side: parse_envelope().
Server side: success_envelope(), failure_envelope(), respond().
"""

import logging
from typing import Any, Callable, Mapping

from ..core.errors import MalformedResponse, ProviderFailure
from .status_models import StatusSnapshot

logger = logging.getLogger(__name__)

MALFORMED_BODY_MESSAGE = "Unexpected response body format."

SnapshotLookup = Callable[[str], "StatusSnapshot | None"]


def parse_envelope(body: Any) -> StatusSnapshot:
    """
    Unwrap a decoded JSON envelope.

    - success=true with a valid status -> StatusSnapshot
    - success=false with a string message -> ProviderFailure(message)
    - anything else -> MalformedResponse
    """
    if not isinstance(body, Mapping):
        raise MalformedResponse(MALFORMED_BODY_MESSAGE)

    success = body.get("success")
    if success is True:
        status = body.get("status")
        if not status:
            raise MalformedResponse(MALFORMED_BODY_MESSAGE)
        return StatusSnapshot.from_dict(status)

    if success is False:
        message = body.get("message")
        if not isinstance(message, str):
            raise MalformedResponse(MALFORMED_BODY_MESSAGE)
        raise ProviderFailure(message)

    raise MalformedResponse(MALFORMED_BODY_MESSAGE)


def success_envelope(snapshot: StatusSnapshot) -> dict[str, Any]:
    return {"success": True, "status": snapshot.to_dict()}


def failure_envelope(message: str) -> dict[str, Any]:
    return {"success": False, "message": str(message)}


def respond(task_id: str | None, lookup: SnapshotLookup) -> dict[str, Any]:
    """
    Build the envelope a status endpoint should return for task_id.

    lookup returns None for unknown tasks. Errors never escape: they become a failure
    envelope so the polling side always gets a well-formed body.
    """
    if not isinstance(task_id, str) or not task_id.strip():
        return failure_envelope(f"Invalid task id: {task_id}")

    try:
        snapshot = lookup(task_id)
    except Exception as exc:
        logger.exception("status lookup failed task_id=%s", task_id)
        return failure_envelope(str(exc) or exc.__class__.__name__)

    if snapshot is None:
        return failure_envelope(f"Invalid task id: {task_id}")
    return success_envelope(snapshot)
