from typing import ClassVar


class ExternalCallError(Exception):
    """Base exception for outbound calls made through ExternalCallClient."""

    kind: ClassVar[str] = "external_call_error"

    def __init__(self, message: str, *, category: str = "") -> None:
        super().__init__(message)
        self.category = category


class QuotaExceededError(ExternalCallError):
    """Raised when the daily call budget for a category is used up."""

    kind: ClassVar[str] = "quota_exceeded"


class RetriesExhaustedError(ExternalCallError):
    """Raised when transient upstream failures outlast the retry policy."""

    kind: ClassVar[str] = "retries_exhausted"

    def __init__(
        self,
        message: str,
        *,
        category: str = "",
        attempts: int = 0,
        last_status: int | None = None,
    ) -> None:
        super().__init__(message, category=category)
        self.attempts = attempts
        self.last_status = last_status


class UpstreamError(ExternalCallError):
    """Raised on a non-transient error status. Never retried."""

    kind: ClassVar[str] = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        category: str = "",
        status_code: int,
        body: str,
    ) -> None:
        super().__init__(message, category=category)
        self.status_code = status_code
        self.body = body


class MalformedUpstreamResponseError(ExternalCallError):
    """Raised when an upstream response violates the expected protocol."""

    kind: ClassVar[str] = "malformed_upstream_response"
