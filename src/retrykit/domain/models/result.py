"""RetryResult model - outcome of a retry sequence"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from retrykit.domain.models.error import ClassifiedError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """The operation eventually succeeded"""

    value: T
    attempts_made: int  # Includes the successful attempt

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the value"""
        return self.value

    def value_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """The operation failed for good: attempts exhausted or error not retryable"""

    error: ClassifiedError
    attempts_made: int  # Includes the final failing attempt

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    def unwrap(self):
        """Raise the carried error"""
        raise self.error

    def value_or(self, default: T) -> T:
        return default


RetryResult = Union[Success[T], Failure]
