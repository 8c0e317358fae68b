"""Callback-to-awaitable conversion.

Both transports report results the way node-style libraries do: the last
positional argument is a callback invoked as `callback(error, *values)`.
`promisify` turns such an operation into a coroutine function that settles
exactly once.

Example:
    >>> get_request_token = promisify(transport.get_oauth_request_token, RequestToken)
    >>> token = await get_request_token(None)
    >>> token.oauth_token_secret
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from authbridge.contracts import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _as_exception(error: Any, values: tuple[Any, ...]) -> BaseException:
    if isinstance(error, BaseException):
        return error
    body = values[0] if values else None
    response = values[1] if len(values) > 1 else None
    status_code = error.get("statusCode") if isinstance(error, Mapping) else None
    return TransportError(
        "transport_error",
        str(error),
        status_code=status_code if isinstance(status_code, int) else None,
        body=body,
        response=response,
        reported_error=error,
    )


def promisify(
    operation: Callable[..., Any],
    shape: Callable[..., T],
    *,
    on_error: Callable[[Any, tuple[Any, ...]], None] | None = None,
) -> Callable[..., Awaitable[T]]:
    """Wrap a callback-style `operation` into a one-shot coroutine function.

    Args:
        operation: Callable taking `(*args, callback)`.
        shape: Builds the success value from the callback's values, in order.
            Dataclasses such as `HandshakeResult` keep the values addressable
            by name.
        on_error: Called with the reported error and the callback's trailing
            values (for example the raw body and response) before rejecting.

    Returns:
        A coroutine function that calls `operation` exactly once and returns
        `shape(*values)`, or raises the error the callback reported.

    A callback may arrive on another thread; it is marshalled onto the
    awaiting event loop. Invocations after the first are ignored. As with
    node-style callbacks, a falsy error value means success.
    """
    name = getattr(operation, "__qualname__", repr(operation))

    async def wrapped(*args: Any) -> T:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()

        def settle(error: Any, values: tuple[Any, ...]) -> None:
            if future.cancelled():
                return
            if future.done():
                logger.warning(
                    "Callback invoked more than once; ignoring",
                    extra={"operation": name},
                )
                return
            if error:
                try:
                    if on_error is not None:
                        on_error(error, values)
                finally:
                    future.set_exception(_as_exception(error, values))
                return
            try:
                future.set_result(shape(*values))
            except Exception as exc:
                future.set_exception(exc)

        def callback(error: Any = None, *values: Any) -> None:
            loop.call_soon_threadsafe(settle, error, values)

        operation(*args, callback)
        return await future

    wrapped.__name__ = getattr(operation, "__name__", "wrapped")
    wrapped.__qualname__ = name
    return wrapped


__all__ = ["promisify"]
