"""Shared HTTP client utilities (requests + retry/backoff).

HTTP logic is kept in one place so every call site retries the same way:
network errors, timeouts, 408, 429 and 5xx are retried, other 4xx fail fast.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

import requests

from retrykit.domain.config.retry import RetryConfig
from retrykit.domain.models.result import Failure
from retrykit.infrastructure.retry import retry, retry_blocking

logger = logging.getLogger(__name__)


def _request_once(
    http: Any,
    method: str,
    url: str,
    *,
    payload: Optional[Dict[str, Any]],
    headers: Optional[Dict[str, str]],
    timeout: float,
) -> requests.Response:
    logger.debug(f"HTTP {method} {url}")
    resp = http.request(method, url, json=payload, headers=headers, timeout=timeout)
    resp.raise_for_status()
    return resp


def _retry_logger(method: str, url: str, retry_config: RetryConfig) -> Callable[[int, Exception], None]:
    def _log_retry(attempt: int, error: Exception) -> None:
        logger.warning(
            f"HTTP {method} {url} failed (attempt {attempt}/{retry_config.max_attempts}): {error}. Retrying..."
        )

    return _log_retry


def send_with_retries(
    method: str,
    url: str,
    *,
    retry_config: RetryConfig,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
    payload: Optional[Dict[str, Any]] = None,
    session: Optional[requests.Session] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> requests.Response:
    """Send an HTTP request, retrying transient failures

    Args:
        method: HTTP method (GET, POST, ...)
        url: Request URL
        retry_config: Retry policy
        timeout: Per-attempt timeout in seconds
        headers: Optional request headers
        payload: Optional JSON body
        session: Optional requests session (module-level requests by default)
        sleep: Optional sleep function used between attempts

    Returns:
        Successful (2xx) response

    Raises:
        ClassifiedError: If the request failed after all attempts or with a
            non-retryable error
    """
    method = method.upper()
    http = session or requests

    result = retry_blocking(
        lambda: _request_once(http, method, url, payload=payload, headers=headers, timeout=timeout),
        retry_config,
        on_retry=_retry_logger(method, url, retry_config),
        sleep=sleep,
    )
    if isinstance(result, Failure):
        logger.error(f"HTTP {method} {url} failed after {result.attempts_made} attempt(s): {result.error}")
        raise result.error
    return result.value


async def send_with_retries_async(
    method: str,
    url: str,
    *,
    retry_config: RetryConfig,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
    payload: Optional[Dict[str, Any]] = None,
    session: Optional[requests.Session] = None,
    sleep: Optional[Callable[[float], Any]] = None,
) -> requests.Response:
    """Async variant of send_with_retries; each attempt runs in a worker thread"""
    method = method.upper()
    http = session or requests

    async def _make_request() -> requests.Response:
        return await asyncio.to_thread(
            _request_once, http, method, url, payload=payload, headers=headers, timeout=timeout
        )

    result = await retry(
        _make_request,
        retry_config,
        on_retry=_retry_logger(method, url, retry_config),
        sleep=sleep,
    )
    if isinstance(result, Failure):
        logger.error(f"HTTP {method} {url} failed after {result.attempts_made} attempt(s): {result.error}")
        raise result.error
    return result.value
