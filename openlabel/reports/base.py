from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from openlabel.reports.exceptions import ReportValidationError
from openlabel.reports.models import VALID_DECISIONS, PurchaseDecision, Report


class BaseReportStore(ABC):
    """Contract for report persistence backends.

    Reports are created once and never deleted. The analysis block is
    write-once; attach_decision is the only mutation and it only replaces
    the purchase decision.
    """

    @abstractmethod
    def save(self, analysis: Mapping[str, Any], metadata: Mapping[str, Any]) -> Report:
        """Persist a completed analysis under a fresh, never reused id.

        Raises:
            ReportValidationError: if the analysis block is missing or empty.
        """

    @abstractmethod
    def list(self) -> list[Report]:
        """Return all readable reports, newest first. Corrupt records are skipped."""

    @abstractmethod
    def get(self, report_id: str) -> Report:
        """Return one report.

        Raises:
            ReportNotFoundError: if the id is unknown.
        """

    @abstractmethod
    def attach_decision(self, report_id: str, decision: str, notes: str = "") -> Report:
        """Set or overwrite the purchase decision of a report and persist it.

        Raises:
            ReportValidationError: if decision is not 'bought' or 'not_bought'.
            ReportNotFoundError: if the id is unknown.
        """


def build_report(
    report_id: str,
    analysis: Mapping[str, Any],
    metadata: Mapping[str, Any],
    saved_at: datetime | None = None,
) -> Report:
    """Assemble a new report with its derived summary and image info."""
    if not analysis:
        raise ReportValidationError("No report data provided")
    stored = dict(analysis)
    results = stored.get("analysisResults") or []
    warning_count = sum(1 for item in results if isinstance(item, dict) and item.get("warnings"))
    return Report(
        id=report_id,
        saved_at=saved_at if saved_at is not None else datetime.now(timezone.utc),
        analysis=stored,
        summary={
            "totalIngredients": stored.get("totalIngredients") or 0,
            "overallScore": stored.get("overallScore") or 0,
            "warningCount": warning_count,
        },
        image_info={"imageUrl": stored.get("imageUrl")},
        metadata={
            "userId": metadata.get("userId"),
            "savedFrom": metadata.get("savedFrom") or "unknown",
            "deviceInfo": metadata.get("deviceInfo") or {},
        },
    )


def build_decision(report: Report, decision: str, notes: str) -> PurchaseDecision:
    validate_decision(decision)
    return PurchaseDecision(
        decision=decision,
        notes=notes or "",
        decided_at=datetime.now(timezone.utc),
        recommendation=report.recommendation,
    )


def validate_decision(decision: str) -> None:
    if decision not in VALID_DECISIONS:
        raise ReportValidationError(
            f"Invalid purchase decision {decision!r}. Choose from: {sorted(VALID_DECISIONS)}"
        )


def newest_first(reports: list[Report]) -> list[Report]:
    return sorted(reports, key=lambda r: (r.saved_at, r.id), reverse=True)
