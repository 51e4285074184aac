"""Exponential backoff with optional jitter."""

from __future__ import annotations

import random
from typing import List, Optional

from tenacity import RetryCallState
from tenacity.wait import wait_base

from retrykit.domain.config.retry import RetryConfig

# Jitter spreads each delay over +/-25% of its value
JITTER_FRACTION = 0.25

_random = random.Random()


def compute_delay(attempt: int, config: RetryConfig, rng: Optional[random.Random] = None) -> float:
    """Delay in seconds to wait after a failed attempt

    Args:
        attempt: 1-based number of the attempt that just failed
        config: Retry policy
        rng: Random source for jitter (module-level instance by default)

    Returns:
        min(initial_delay * backoff_multiplier ** (attempt - 1), max_delay),
        jittered when the policy asks for it, never negative
    """
    if config.initial_delay == 0:
        delay = 0.0
    else:
        try:
            delay = config.initial_delay * config.backoff_multiplier ** (attempt - 1)
        except OverflowError:
            delay = config.max_delay
    delay = min(delay, config.max_delay)

    if config.use_jitter:
        source = rng if rng is not None else _random
        delay += delay * JITTER_FRACTION * source.uniform(-1.0, 1.0)

    return max(0.0, delay)


def delay_schedule(config: RetryConfig, rng: Optional[random.Random] = None) -> List[float]:
    """Delays between all attempts of a policy (max_attempts - 1 values)"""
    return [compute_delay(attempt, config, rng) for attempt in range(1, config.max_attempts)]


class wait_backoff(wait_base):
    """Tenacity wait strategy backed by compute_delay"""

    def __init__(self, config: RetryConfig, rng: Optional[random.Random] = None):
        self.config = config
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        return compute_delay(retry_state.attempt_number, self.config, self.rng)
