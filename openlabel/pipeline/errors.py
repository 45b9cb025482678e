"""Turns pipeline exceptions into structured, user-facing error payloads."""

from dataclasses import dataclass, field
from typing import Any

from openlabel.external.exceptions import ExternalCallError, UpstreamError
from openlabel.ocr.exceptions import RecognitionError
from openlabel.reports.exceptions import ReportError

INTERNAL_ERROR = "internal_error"

_MESSAGES: dict[str, str] = {
    "quota_exceeded": "Daily request limit reached. Try again tomorrow.",
    "retries_exhausted": "The upstream service is busy. Please retry in a moment.",
    "upstream_error": "The upstream service rejected the request.",
    "malformed_upstream_response": "The upstream service returned an unexpected response.",
    "recognition_failed": "Text recognition failed for this image.",
    "recognition_timed_out": "Text recognition did not finish in time.",
    "not_found": "The requested item was not found.",
    INTERNAL_ERROR: "Failed to analyze image.",
}

_RETRYABLE = frozenset({"retries_exhausted", "recognition_timed_out", "recognition_failed"})


@dataclass(frozen=True)
class ErrorPayload:
    kind: str
    message: str
    retryable: bool = False
    detail: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": False,
            "kind": self.kind,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.detail:
            data["detail"] = self.detail
        return data


def describe_failure(exc: BaseException) -> ErrorPayload:
    """Map any pipeline exception onto an ErrorPayload with a stable kind."""
    if isinstance(exc, (ExternalCallError, RecognitionError, ReportError)):
        kind = exc.kind
    elif isinstance(exc, FileNotFoundError):
        kind = "not_found"
    else:
        kind = INTERNAL_ERROR

    detail: dict[str, Any] = {}
    if isinstance(exc, UpstreamError):
        detail = {"status": exc.status_code, "body": exc.body}
    elif kind in _MESSAGES:
        detail = {"reason": str(exc)}

    return ErrorPayload(
        kind=kind,
        message=_MESSAGES.get(kind, str(exc)),
        retryable=kind in _RETRYABLE,
        detail=detail,
    )
