"""Domain models"""

from retrykit.domain.models.error import ClassifiedError, ErrorKind
from retrykit.domain.models.result import Failure, RetryResult, Success

__all__ = ["ClassifiedError", "ErrorKind", "Failure", "RetryResult", "Success"]
