"""ClassifiedError model - a failure tagged with its kind and retryability"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kind of failure, as far as retrying is concerned"""

    NETWORK = "network"  # Connection refused, DNS failure, reset socket
    TIMEOUT = "timeout"
    SERVER = "server"  # 5xx and throttling
    CLIENT = "client"  # 4xx and anything unclassified


RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.SERVER})

_USER_MESSAGES = {
    ErrorKind.NETWORK: "Network error. Please check your connection.",
    ErrorKind.TIMEOUT: "Request timed out. Please try again.",
    ErrorKind.SERVER: "Server error. Please try again later.",
    ErrorKind.CLIENT: "The request could not be completed.",
}


class ClassifiedError(Exception):
    """Failure of an attempted operation, classified for retry decisions.

    The raw exception is kept as ``original`` and chained as ``__cause__``
    so tracebacks still show where the failure came from.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        is_retryable: Optional[bool] = None,
        status_code: Optional[int] = None,
        original: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.is_retryable = self.kind in RETRYABLE_KINDS if is_retryable is None else is_retryable
        self.status_code = status_code
        self.original = original
        if original is not None:
            self.__cause__ = original

    def __reduce__(self):
        # Exception pickling only replays positional args; keep every field
        return (
            self.__class__,
            (self.kind, self.message),
            {
                "is_retryable": self.is_retryable,
                "status_code": self.status_code,
                "original": self.original,
                "__cause__": self.__cause__,
            },
        )

    @property
    def user_message(self) -> str:
        """Message suitable for showing to an end user"""
        if self.status_code == 429:
            return "Too many requests. Please try again later."
        if self.status_code == 401:
            return "Session expired. Please log in again."
        if self.status_code == 403:
            return "You don't have permission to perform this action."
        if self.status_code == 404:
            return "The requested resource was not found."
        return _USER_MESSAGES[self.kind]

    @property
    def is_network_error(self) -> bool:
        return self.kind in (ErrorKind.NETWORK, ErrorKind.TIMEOUT)

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)

    @classmethod
    def from_status_code(
        cls,
        status_code: int,
        message: Optional[str] = None,
        original: Optional[BaseException] = None,
    ) -> "ClassifiedError":
        """Create a ClassifiedError from an HTTP status code

        Args:
            status_code: HTTP status code of the failed response
            message: Optional message (defaults to a generic one)
            original: Exception the status was taken from

        Returns:
            ClassifiedError with kind and retryability set from the status.
            408, 429 and 5xx are retryable. A 3xx is a redirect the HTTP
            client did not follow; it is classified as a network error but,
            unlike other network errors, is not retryable.
        """
        text = message or f"Request failed with status {status_code}"

        if status_code == 408:
            return cls(ErrorKind.TIMEOUT, text, status_code=status_code, original=original)
        if status_code == 429 or status_code >= 500:
            return cls(ErrorKind.SERVER, text, status_code=status_code, original=original)
        if 300 <= status_code < 400:
            # Redirect the HTTP client did not follow; retrying won't change it
            return cls(
                ErrorKind.NETWORK,
                message or f"Redirect not followed: {status_code}",
                is_retryable=False,
                status_code=status_code,
                original=original,
            )
        return cls(ErrorKind.CLIENT, text, status_code=status_code, original=original)

    def __repr__(self) -> str:
        status = f", status_code={self.status_code}" if self.status_code is not None else ""
        return (
            f"ClassifiedError(kind={self.kind.value}, retryable={self.is_retryable}"
            f"{status}, message={self.message!r})"
        )
