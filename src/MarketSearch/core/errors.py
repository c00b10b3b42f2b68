"""Structured search failure types.

Every failure observed by the execution engine is normalized into a
`SearchError` carrying an `ErrorKind`, so retry eligibility is decided on an
enumeration rather than on transport-specific exception messages.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure classes seen at the search-service transport boundary."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    DNS = "dns"
    TRANSPORT = "transport"
    SERVER = "server"
    CLIENT = "client"
    DECODE = "decode"


class SearchError(Exception):
    """A single failed search attempt.

    Attributes:
        kind: Failure class used by the retry policy.
        status_code: HTTP status when the service answered, otherwise None.
        message: Human-readable detail for logs.
    """

    def __init__(self, kind: ErrorKind, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.message = message

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.kind.value} (HTTP {self.status_code}): {self.message}"
        return f"{self.kind.value}: {self.message}"

    @classmethod
    def from_status(cls, status_code: int, body: str = "") -> SearchError:
        """Build an error from a non-2xx HTTP status.

        Args:
            status_code: Response status code.
            body: Response body text, truncated for logging.

        Returns:
            A `SERVER` error for 5xx codes, otherwise a `CLIENT` error.
        """
        kind = ErrorKind.SERVER if status_code >= 500 else ErrorKind.CLIENT
        detail = body.strip()[:200] or f"HTTP {status_code}"
        return cls(kind, detail, status_code=status_code)
