import re
import secrets
import string
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

DECISION_BOUGHT = "bought"
DECISION_NOT_BOUGHT = "not_bought"
VALID_DECISIONS = frozenset({DECISION_BOUGHT, DECISION_NOT_BOUGHT})

REPORT_ID_RE = re.compile(r"report_\d+_[0-9a-z]+")

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 6


def new_report_id() -> str:
    """Time-based id with a random base36 suffix, e.g. report_1729350000123_k3x9qa."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"report_{time.time_ns() // 1_000_000}_{suffix}"


def is_valid_report_id(report_id: str) -> bool:
    return REPORT_ID_RE.fullmatch(report_id) is not None


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 timestamp; one written without an offset is read as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class PurchaseDecision:
    """What the user did after reading the report."""

    decision: str
    notes: str
    decided_at: datetime
    recommendation: str = "unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision,
            "decidedAt": self.decided_at.isoformat(),
            "notes": self.notes,
            "recommendation": self.recommendation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PurchaseDecision":
        return cls(
            decision=data["decision"],
            notes=data.get("notes", ""),
            decided_at=parse_timestamp(data["decidedAt"]),
            recommendation=data.get("recommendation", "unknown"),
        )


@dataclass(frozen=True)
class Report:
    """A saved analysis. Only purchase_decision may change after creation."""

    id: str
    saved_at: datetime
    analysis: dict[str, Any]
    summary: dict[str, Any] = field(default_factory=dict)
    image_info: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    purchase_decision: PurchaseDecision | None = None

    @property
    def user_id(self) -> str | None:
        value = self.metadata.get("userId")
        return str(value) if value is not None else None

    @property
    def recommendation(self) -> str:
        product = self.analysis.get("productRecommendation")
        if isinstance(product, dict) and product.get("recommendation"):
            return str(product["recommendation"])
        return "unknown"

    def with_decision(self, decision: PurchaseDecision) -> "Report":
        return replace(self, purchase_decision=decision)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "savedAt": self.saved_at.isoformat(),
            "analysis": self.analysis,
            "summary": self.summary,
            "imageInfo": self.image_info,
            "metadata": self.metadata,
        }
        if self.purchase_decision is not None:
            data["purchaseDecision"] = self.purchase_decision.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Report":
        """Rebuild a report from its stored form.

        Raises:
            KeyError, TypeError, ValueError: if the record is incomplete or malformed.
        """
        analysis = data["analysis"]
        if not isinstance(analysis, dict):
            raise TypeError("'analysis' must be an object")
        raw_decision = data.get("purchaseDecision")
        return cls(
            id=str(data["id"]),
            saved_at=parse_timestamp(data["savedAt"]),
            analysis=analysis,
            summary=data.get("summary") or {},
            image_info=data.get("imageInfo") or {},
            metadata=data.get("metadata") or {},
            purchase_decision=(
                PurchaseDecision.from_dict(raw_decision) if raw_decision else None
            ),
        )
