"""Configuration models with Pydantic validation."""

from retrykit.domain.config.app import AppConfig
from retrykit.domain.config.http import HttpConfig
from retrykit.domain.config.retry import (
    AGGRESSIVE,
    DEFAULT,
    PRESETS,
    QUICK,
    STANDARD,
    RetryConfig,
)

__all__ = [
    "AppConfig",
    "HttpConfig",
    "RetryConfig",
    "DEFAULT",
    "QUICK",
    "STANDARD",
    "AGGRESSIVE",
    "PRESETS",
]
