"""HTTP client configuration model."""

from typing import Dict

from pydantic import BaseModel, Field


class HttpConfig(BaseModel):
    """Configuration for HTTP calls made through the retrying client.

    Attributes:
        timeout: Per-request timeout in seconds
        headers: Headers sent with every request
    """

    timeout: float = Field(30.0, gt=0.0)
    headers: Dict[str, str] = Field(default_factory=dict)
