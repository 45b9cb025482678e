from typing import ClassVar


class ReportError(Exception):
    """Base exception for all report store errors."""

    kind: ClassVar[str] = "report_error"


class ReportNotFoundError(ReportError):
    """Raised when no report with the requested id exists."""

    kind: ClassVar[str] = "not_found"


class ReportValidationError(ReportError):
    """Raised for a malformed decision value or missing required report data."""

    kind: ClassVar[str] = "validation_error"


class CorruptReportError(ReportError):
    """Raised when a stored report exists but cannot be decoded."""

    kind: ClassVar[str] = "corrupt_report"
