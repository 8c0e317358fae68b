"""Shared plumbing for the callback-style httpx transports."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import urlsplit

import httpx

from authbridge.config import HttpTransportConfig
from authbridge.contracts import Callback, TransportError

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], httpx.AsyncClient]
CallbackArgs = tuple[Any, ...]


def redact_url(url: str) -> str:
    """Drop the query string so tokens never reach the logs."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


def error_from_response(method: str, url: str, response: httpx.Response) -> TransportError:
    return TransportError(
        "http_error",
        f"{method} {redact_url(url)} returned {response.status_code}",
        status_code=response.status_code,
        body=response.text,
        response=response,
    )


def error_from_exception(method: str, url: str, exc: httpx.HTTPError) -> TransportError:
    error = TransportError("network_error", f"{method} {redact_url(url)} failed: {exc}")
    error.__cause__ = exc
    return error


class CallbackTransport:
    """Run httpx coroutines on the current loop and report via callbacks.

    Subclasses implement coroutines that return the callback arguments as a
    tuple, `(error, *values)`; `_dispatch` schedules the coroutine and hands
    that tuple to the callback once it completes.
    """

    def __init__(
        self,
        config: HttpTransportConfig | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self.config = config or HttpTransportConfig()
        self._client_factory = client_factory or self._default_client
        self._pending: set[asyncio.Task[CallbackArgs]] = set()

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.timeout_seconds)

    def _dispatch(
        self,
        coro: Coroutine[Any, Any, CallbackArgs],
        callback: Callback,
    ) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)

        def deliver(done: asyncio.Task[CallbackArgs]) -> None:
            self._pending.discard(done)
            if done.cancelled():
                callback(TransportError("cancelled", "Request was cancelled"))
                return
            exc = done.exception()
            if exc is not None:
                callback(exc)
                return
            callback(*done.result())

        task.add_done_callback(deliver)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: str | None = None,
        data: dict[str, str] | None = None,
        auth: httpx.Auth | None = None,
    ) -> tuple[TransportError | None, httpx.Response | None]:
        logger.debug(
            "Sending provider request",
            extra={"method": method, "url": redact_url(url)},
        )
        try:
            async with self._client_factory() as client:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    content=content,
                    data=data,
                    auth=auth if auth is not None else httpx.USE_CLIENT_DEFAULT,
                )
        except httpx.HTTPError as exc:
            return error_from_exception(method, url, exc), None

        if not 200 <= response.status_code < 300:
            return error_from_response(method, url, response), response
        return None, response
