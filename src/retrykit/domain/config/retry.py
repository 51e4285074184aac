"""Retry policy model and named presets."""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class RetryConfig(BaseModel):
    """Configuration for retry logic.

    Attributes:
        max_attempts: Total number of attempts, including the first one
        initial_delay: Delay before the first retry, in seconds
        backoff_multiplier: Exponential backoff multiplier
        max_delay: Upper bound for a single delay, in seconds
        use_jitter: Apply +/-25% random jitter to each delay
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: int = Field(3, ge=1)
    initial_delay: float = Field(1.0, ge=0.0)  # Allow 0 for tests
    backoff_multiplier: float = Field(2.0, ge=1.0)
    max_delay: float = Field(30.0, ge=0.0)
    use_jitter: bool = True

    @classmethod
    def preset(cls, name: str) -> "RetryConfig":
        """Get a named preset (quick, standard, aggressive)

        Raises:
            ValueError: If the preset name is unknown
        """
        key = name.strip().lower()
        if key not in PRESETS:
            available = ", ".join(PRESETS)
            raise ValueError(f"Unknown retry preset: {name}. Available presets: {available}")
        return PRESETS[key]


DEFAULT = RetryConfig()

# Short delays for interactive actions
QUICK = RetryConfig(max_attempts=2, initial_delay=0.5, backoff_multiplier=1.5, max_delay=2.0)

# Regular API calls
STANDARD = RetryConfig(max_attempts=3, initial_delay=1.0, backoff_multiplier=2.0, max_delay=10.0)

# Critical operations
AGGRESSIVE = RetryConfig(max_attempts=5, initial_delay=2.0, backoff_multiplier=2.0, max_delay=30.0)

PRESETS: Dict[str, RetryConfig] = {
    "quick": QUICK,
    "standard": STANDARD,
    "aggressive": AGGRESSIVE,
}
