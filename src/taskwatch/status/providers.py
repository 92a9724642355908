# src/taskwatch/status/providers.py

from __future__ import annotations

"""
Status providers.

- HttpStatusProvider: GETs an envelope from a status endpoint (httpx).
- InProcessStatusProvider: asks a local lookup function directly.

Both satisfy core.ports.StatusProvider: await provider(task_id) -> StatusSnapshot.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable

import httpx

from ..core.errors import MalformedResponse, ProviderFailure
from .envelope import MALFORMED_BODY_MESSAGE, parse_envelope
from .status_models import StatusSnapshot

logger = logging.getLogger(__name__)

TASK_ID_PARAM = "taskId"


class HttpStatusProvider:
    """
    Poll a status endpoint over HTTP.

    The task id is merged into the URL's existing query string as ?taskId=...
    If no client is injected, one is created lazily and closed by aclose().
    """

    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        if not url or not url.strip():
            raise ValueError("status url is required")
        self.url = url.strip()
        self._client = client
        self._owns_client = client is None
        self._timeout = max(0.1, float(timeout_seconds))

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def __call__(self, task_id: str) -> StatusSnapshot:
        return await self.fetch_status(task_id)

    def request_url(self, task_id: str) -> httpx.URL:
        # Merge, never replace: the endpoint needs its own query parameters too.
        return httpx.URL(self.url).copy_merge_params({TASK_ID_PARAM: task_id})

    async def fetch_status(self, task_id: str) -> StatusSnapshot:
        client = self._get_client()
        try:
            resp = await client.get(self.request_url(task_id))
        except httpx.TimeoutException as exc:
            logger.debug("status.timeout task_id=%s err=%s", task_id, exc)
            raise ProviderFailure(f"Request timed out: {exc}") from exc
        except httpx.RequestError as exc:
            logger.debug("status.request_error task_id=%s err=%s", task_id, exc)
            raise ProviderFailure(f"Request failed: {exc}") from exc

        if resp.status_code != 200:
            raise ProviderFailure(f"Unexpected response code: {resp.status_code} {resp.reason_phrase}.")

        try:
            body = resp.json()
        except ValueError as exc:
            raise MalformedResponse(MALFORMED_BODY_MESSAGE) from exc

        return parse_envelope(body)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpStatusProvider:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class InProcessStatusProvider:
    """
    Query task status without a transport.

    lookup may be sync or async and returns None for unknown tasks. Any error it
    raises is normalized into ProviderFailure.
    """

    def __init__(
        self,
        lookup: Callable[[str], StatusSnapshot | None | Awaitable[StatusSnapshot | None]],
    ) -> None:
        self._lookup = lookup

    async def __call__(self, task_id: str) -> StatusSnapshot:
        try:
            result = self._lookup(task_id)
            if inspect.isawaitable(result):
                result = await result
        except ProviderFailure:
            raise
        except Exception as exc:
            raise ProviderFailure(str(exc) or exc.__class__.__name__) from exc

        if result is None:
            raise ProviderFailure(f"Invalid task id: {task_id}")
        if not isinstance(result, StatusSnapshot):
            raise MalformedResponse(f"Expected a StatusSnapshot, got {type(result).__name__}.")
        return result
