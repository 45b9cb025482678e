from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

from openlabel.analysis.models import (
    CATEGORY_BENEFICIAL,
    CATEGORY_HARMFUL,
    DECISION_AVOID,
    DECISION_BUY,
    DECISION_CAUTION,
    SEVERITY_HIGH,
    IngredientFinding,
    Recommendation,
    RecommendationSummary,
)

MAX_CONFIDENCE = 95
CONFIDENCE_PER_POINT = 30
LONG_LIST_BONUS = 20
LONG_LIST_THRESHOLD = 3
PROCESSED_THRESHOLD = 20
SIMPLE_THRESHOLD = 5


class RecommendationSynthesizer:
    """Aggregates per-ingredient findings into one grade, decision and confidence."""

    # (minimum average score, grade, decision, advice), checked top to bottom.
    GRADES: ClassVar[list[tuple[float, str, str, str]]] = [
        (1.5, "A", DECISION_BUY, "Recommended - This is a healthy choice!"),
        (0.5, "B", DECISION_BUY, "Good Choice - Generally healthy with minor concerns"),
        (-0.5, "C", DECISION_CAUTION, "Use Caution - Mixed ingredients, consume in moderation"),
        (-1.5, "D", DECISION_AVOID, "Not Recommended - Contains concerning ingredients"),
    ]
    FAILING_GRADE: ClassVar[tuple[str, str, str]] = (
        "F",
        DECISION_AVOID,
        "Avoid - Multiple harmful ingredients detected",
    )
    HIGH_RISK_ADVICE: ClassVar[str] = "Avoid - Contains high-risk ingredients"

    def synthesize(self, findings: list[IngredientFinding]) -> Recommendation:
        count = len(findings)
        total = sum(f.health_score for f in findings)
        average = total / count if count > 0 else 0.0

        harmful = sum(1 for f in findings if f.category == CATEGORY_HARMFUL)
        beneficial = sum(1 for f in findings if f.category == CATEGORY_BENEFICIAL)
        high_severity = sum(1 for f in findings if f.severity == SEVERITY_HIGH)

        grade, decision, advice = self._grade(average)
        if high_severity > 0:
            grade, decision, advice = "F", DECISION_AVOID, self.HIGH_RISK_ADVICE

        confidence = min(
            MAX_CONFIDENCE,
            abs(average * CONFIDENCE_PER_POINT)
            + (LONG_LIST_BONUS if count > LONG_LIST_THRESHOLD else 0),
        )

        return Recommendation(
            recommendation=decision,
            health_grade=grade,
            buy_advice=advice,
            confidence=int(round_half_up(confidence, 0)),
            average_score=round_half_up(average, 1),
            reasoning=_reasoning(count, harmful, beneficial),
            summary=RecommendationSummary(
                total_ingredients=count,
                harmful_count=harmful,
                beneficial_count=beneficial,
                high_severity_count=high_severity,
                overall_score=round_half_up(overall_score(average), 1),
            ),
        )

    def _grade(self, average: float) -> tuple[str, str, str]:
        for minimum, grade, decision, advice in self.GRADES:
            if average >= minimum:
                return grade, decision, advice
        return self.FAILING_GRADE


def overall_score(average: float) -> float:
    """Map an average score in [-3, 3] onto a 0-10 scale."""
    return ((average + 3) * 10) / 6


def round_half_up(value: float, places: int) -> float:
    """Round halves away from zero, matching how the scores are presented to users."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def _reasoning(count: int, harmful: int, beneficial: int) -> list[str]:
    reasoning: list[str] = []
    if harmful > 0:
        reasoning.append(f"Contains {_plural(harmful, 'harmful ingredient')}")
    if beneficial > 0:
        reasoning.append(f"Contains {_plural(beneficial, 'beneficial ingredient')}")
    if count > PROCESSED_THRESHOLD:
        reasoning.append("High number of ingredients - may be heavily processed")
    if count <= SIMPLE_THRESHOLD:
        reasoning.append("Simple ingredient list - likely less processed")
    return reasoning
