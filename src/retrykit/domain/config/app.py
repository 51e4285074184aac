"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from retrykit.domain.config.http import HttpConfig
from retrykit.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is
    performed at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry policy used by the CLI and the HTTP client
        http: HTTP client configuration
    """

    retry: RetryConfig = Field(default_factory=RetryConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "retry": {
                    "max_attempts": 3,
                    "initial_delay": 1.0,
                    "backoff_multiplier": 2.0,
                    "max_delay": 10.0,
                    "use_jitter": True,
                },
                "http": {
                    "timeout": 30.0,
                    "headers": {"Accept": "application/json"},
                },
            }
        },
    )
