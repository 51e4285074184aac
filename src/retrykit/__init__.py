"""retrykit - retries with exponential backoff, jitter and error classification"""

from retrykit.domain.config.retry import AGGRESSIVE, DEFAULT, PRESETS, QUICK, STANDARD, RetryConfig
from retrykit.domain.models.error import ClassifiedError, ErrorKind
from retrykit.domain.models.result import Failure, RetryResult, Success
from retrykit.infrastructure.backoff import compute_delay, delay_schedule
from retrykit.infrastructure.classifier import classify, is_retryable
from retrykit.infrastructure.retry import (
    retry,
    retry_async,
    retry_blocking,
    retry_decorator,
    retry_or_throw,
    with_retry,
)

__all__ = [
    "RetryConfig",
    "DEFAULT",
    "QUICK",
    "STANDARD",
    "AGGRESSIVE",
    "PRESETS",
    "ErrorKind",
    "ClassifiedError",
    "Success",
    "Failure",
    "RetryResult",
    "compute_delay",
    "delay_schedule",
    "classify",
    "is_retryable",
    "retry",
    "retry_or_throw",
    "retry_async",
    "with_retry",
    "retry_decorator",
    "retry_blocking",
]
