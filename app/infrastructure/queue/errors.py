"""Typed failures raised by the dispatch queue client."""

from __future__ import annotations

import asyncio

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError


class QueueError(RuntimeError):
    """Base class for failures talking to the queue backend."""


class QueueConnectivityError(QueueError):
    """The queue backend could not be reached (refused, reset, timed out)."""


class QueueProtocolError(QueueError):
    """The backend was reachable but the command failed."""


QUEUE_BACKEND_ERRORS = (RedisError, OSError, asyncio.TimeoutError)

_CONNECTIVITY_ERRORS = (
    RedisConnectionError,
    RedisTimeoutError,
    OSError,
    asyncio.TimeoutError,
)


def classify_queue_error(exc: BaseException) -> QueueError:
    """Translate a backend exception into the matching :class:`QueueError`."""

    if isinstance(exc, QueueError):
        return exc
    detail = str(exc) or exc.__class__.__name__
    if isinstance(exc, _CONNECTIVITY_ERRORS):
        return QueueConnectivityError(detail)
    return QueueProtocolError(detail)


__all__ = [
    "QUEUE_BACKEND_ERRORS",
    "QueueConnectivityError",
    "QueueError",
    "QueueProtocolError",
    "classify_queue_error",
]
