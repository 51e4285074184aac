"""Default error classification for retry decisions.

Structured information wins over guessing: an explicit retryable flag on
the error first, then an HTTP status code, then the exception type. The
message text is only inspected when none of those are available.
"""

from __future__ import annotations

import asyncio
import re
import socket
from typing import Optional

import requests

from retrykit.domain.models.error import ClassifiedError, ErrorKind

_TIMEOUT_TYPES = (
    TimeoutError,
    asyncio.TimeoutError,
    socket.timeout,
    requests.exceptions.Timeout,
)

_NETWORK_TYPES = (
    ConnectionError,
    socket.gaierror,
    socket.herror,
    requests.exceptions.ConnectionError,
)

# A whole 5xx status token, e.g. "HTTP 503" but not "order 1500"
_SERVER_STATUS_RE = re.compile(r"\b5\d\d\b")


def _explicit_retryable(error: BaseException) -> Optional[bool]:
    """Retryable flag declared by the error itself, if any"""
    for attr in ("is_retryable", "retryable"):
        value = getattr(error, attr, None)
        if isinstance(value, bool):
            return value
    return None


def _status_code(error: BaseException) -> Optional[int]:
    if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
        return error.response.status_code
    for attr in ("status_code", "response_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _kind_from_text(message: str) -> Optional[ErrorKind]:
    text = message.lower()
    if _SERVER_STATUS_RE.search(text):
        return ErrorKind.SERVER
    if "timeout" in text or "timed out" in text:
        return ErrorKind.TIMEOUT
    if "connection" in text:
        return ErrorKind.NETWORK
    return None


def classify(error: BaseException) -> ClassifiedError:
    """Convert any exception into a ClassifiedError

    Args:
        error: Exception raised by an attempt

    Returns:
        ClassifiedError wrapping ``error`` (or ``error`` itself if it is
        already classified)
    """
    if isinstance(error, ClassifiedError):
        return error

    message = str(error) or type(error).__name__
    explicit = _explicit_retryable(error)

    status_code = _status_code(error)
    if status_code is not None:
        classified = ClassifiedError.from_status_code(status_code, message=message, original=error)
        if explicit is not None:
            classified.is_retryable = explicit
        return classified

    if isinstance(error, _TIMEOUT_TYPES):
        kind = ErrorKind.TIMEOUT
    elif isinstance(error, _NETWORK_TYPES):
        kind = ErrorKind.NETWORK
    else:
        kind = _kind_from_text(message) or ErrorKind.CLIENT

    return ClassifiedError(kind, message, is_retryable=explicit, original=error)


def is_retryable(error: BaseException) -> bool:
    """Default retry predicate: network, timeout and 5xx failures are retried"""
    return classify(error).is_retryable
