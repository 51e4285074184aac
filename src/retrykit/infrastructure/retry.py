"""Retry executor built on tenacity.

``retry`` runs an async operation until it succeeds, runs out of attempts
or fails with an error that is not worth retrying. Failures never escape:
they come back as a ``Failure`` carrying a ClassifiedError. ``retry_or_throw``
and ``retry_async`` offer exception and callback styles on top of it, and
``retry_blocking`` is the same loop for synchronous callables.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
)

from retrykit.domain.config.retry import DEFAULT, RetryConfig
from retrykit.domain.models.error import ClassifiedError
from retrykit.domain.models.result import Failure, RetryResult, Success
from retrykit.infrastructure.backoff import wait_backoff
from retrykit.infrastructure.classifier import classify, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")

ShouldRetry = Callable[[Exception], bool]
OnRetry = Callable[[int, Exception], None]


def _retrying_kwargs(
    config: RetryConfig,
    should_retry: Optional[ShouldRetry],
    on_retry: Optional[OnRetry],
    rng: Optional[random.Random],
) -> Dict[str, Any]:
    """Tenacity settings shared by the async and blocking executors"""
    predicate = should_retry or is_retryable

    def _retry_condition(exception: BaseException) -> bool:
        # Cancellation and interpreter exits are never retried
        return isinstance(exception, Exception) and predicate(exception)

    def _before_sleep(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        error = retry_state.outcome.exception()
        attempt = retry_state.attempt_number
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.debug(
            f"Attempt {attempt}/{config.max_attempts} failed, retrying in {delay:.3f}s: {error}"
        )
        if on_retry is not None:
            on_retry(attempt, error)

    return {
        "stop": stop_after_attempt(config.max_attempts),
        "wait": wait_backoff(config, rng),
        "retry": retry_if_exception(_retry_condition),
        "before_sleep": _before_sleep,
        "reraise": True,
    }


async def retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig = DEFAULT,
    should_retry: Optional[ShouldRetry] = None,
    on_retry: Optional[OnRetry] = None,
    *,
    rng: Optional[random.Random] = None,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
) -> RetryResult[T]:
    """Run an async operation with exponential backoff

    Args:
        operation: Zero-argument callable returning an awaitable
        config: Retry policy
        should_retry: Predicate overriding the default classifier
        on_retry: Called with (attempt, error) before each delay
        rng: Random source for jitter
        sleep: Async sleep function (asyncio.sleep by default)

    Returns:
        Success with the value, or Failure with the last classified error.
        Errors raised by ``operation`` are never propagated.

    Example:
        result = await retry(lambda: client.fetch(), config=STANDARD)
        if result.is_success:
            use(result.value)
    """
    attempts = 0
    operation_error: Optional[Exception] = None

    async def _attempt() -> T:
        nonlocal attempts, operation_error
        attempts += 1
        try:
            return await operation()
        except Exception as e:
            operation_error = e
            raise

    retrying = AsyncRetrying(
        sleep=sleep or asyncio.sleep,
        **_retrying_kwargs(config, should_retry, on_retry, rng),
    )
    try:
        value = await retrying(_attempt)
    except Exception as e:
        if e is not operation_error:
            raise
        return Failure(classify(e), attempts)
    return Success(value, attempts)


async def retry_or_throw(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig = DEFAULT,
    should_retry: Optional[ShouldRetry] = None,
    on_retry: Optional[OnRetry] = None,
    **kwargs: Any,
) -> T:
    """Like retry(), but return the value directly

    Raises:
        ClassifiedError: The error a Failure result would have carried
    """
    result = await retry(operation, config, should_retry, on_retry, **kwargs)
    if isinstance(result, Failure):
        raise result.error
    return result.value


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    on_success: Callable[[T], None],
    on_error: Callable[[ClassifiedError], None],
    config: RetryConfig = DEFAULT,
    on_retrying: Optional[Callable[[int], None]] = None,
    **kwargs: Any,
) -> None:
    """Callback flavour of retry(): exactly one of the handlers is called, once"""

    def _on_retry(attempt: int, _error: Exception) -> None:
        if on_retrying is not None:
            on_retrying(attempt)

    result = await retry(operation, config, on_retry=_on_retry, **kwargs)
    if isinstance(result, Success):
        on_success(result.value)
    else:
        on_error(result.error)


def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig = DEFAULT,
    should_retry: Optional[ShouldRetry] = None,
    on_retry: Optional[OnRetry] = None,
    **kwargs: Any,
) -> Awaitable[RetryResult[T]]:
    """Shorthand for ``retry(operation, ...)``, awaited by the caller"""
    return retry(operation, config, should_retry, on_retry, **kwargs)


def retry_decorator(
    config: RetryConfig = DEFAULT,
    should_retry: Optional[ShouldRetry] = None,
    on_retry: Optional[OnRetry] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorate an ``async def`` so every call goes through retry_or_throw"""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapped(*args: Any, **kwargs: Any) -> T:
            return await retry_or_throw(lambda: func(*args, **kwargs), config, should_retry, on_retry)

        return wrapped

    return decorator


def retry_blocking(
    operation: Callable[[], T],
    config: RetryConfig = DEFAULT,
    should_retry: Optional[ShouldRetry] = None,
    on_retry: Optional[OnRetry] = None,
    *,
    rng: Optional[random.Random] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> RetryResult[T]:
    """Synchronous counterpart of retry(), sleeping with time.sleep"""
    attempts = 0
    operation_error: Optional[Exception] = None

    def _attempt() -> T:
        nonlocal attempts, operation_error
        attempts += 1
        try:
            return operation()
        except Exception as e:
            operation_error = e
            raise

    retrying = Retrying(
        sleep=sleep or time.sleep,
        **_retrying_kwargs(config, should_retry, on_retry, rng),
    )
    try:
        value = retrying(_attempt)
    except Exception as e:
        if e is not operation_error:
            raise
        return Failure(classify(e), attempts)
    return Success(value, attempts)
