from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

CATEGORY_HARMFUL = "harmful"
CATEGORY_BENEFICIAL = "beneficial"
CATEGORY_MIXED = "mixed"
CATEGORY_NEUTRAL = "neutral"

SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"

ACCEPT = "accept"
AVOID = "avoid"

DECISION_BUY = "buy"
DECISION_CAUTION = "caution"
DECISION_AVOID = "avoid"


@dataclass(frozen=True)
class IngredientFinding:
    """Scored result for one extracted ingredient candidate."""

    name: str
    health_score: int
    warnings: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    category: str = CATEGORY_NEUTRAL
    severity: str = SEVERITY_LOW

    @property
    def recommendation(self) -> str:
        return ACCEPT if self.health_score >= 0 else AVOID

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "healthScore": self.health_score,
            "warnings": list(self.warnings),
            "benefits": list(self.benefits),
            "category": self.category,
            "severity": self.severity,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class RecommendationSummary:
    total_ingredients: int
    harmful_count: int
    beneficial_count: int
    high_severity_count: int
    overall_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalIngredients": self.total_ingredients,
            "harmfulCount": self.harmful_count,
            "beneficialCount": self.beneficial_count,
            "highSeverityCount": self.high_severity_count,
            "overallScore": self.overall_score,
        }


@dataclass(frozen=True)
class Recommendation:
    """Purchase recommendation synthesized from all findings of one analysis."""

    recommendation: str
    health_grade: str
    buy_advice: str
    confidence: int
    average_score: float
    reasoning: list[str]
    summary: RecommendationSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommendation": self.recommendation,
            "healthGrade": self.health_grade,
            "buyAdvice": self.buy_advice,
            "confidence": self.confidence,
            "averageScore": self.average_score,
            "reasoning": list(self.reasoning),
            "summary": self.summary.to_dict(),
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LabelAnalysis:
    """Complete result of analyzing one label image."""

    image_url: str
    extracted_text: str
    possible_ingredients: list[str]
    findings: list[IngredientFinding]
    recommendation: Recommendation
    ocr_provider: str = ""
    analyzed_at: datetime = field(default_factory=_utcnow)

    @property
    def total_ingredients(self) -> int:
        return len(self.possible_ingredients)

    @property
    def overall_score(self) -> float:
        return self.recommendation.summary.overall_score

    def to_dict(self) -> dict[str, Any]:
        return {
            "imageUrl": self.image_url,
            "extractedText": self.extracted_text,
            "possibleIngredients": list(self.possible_ingredients),
            "analysisResults": [f.to_dict() for f in self.findings],
            "productRecommendation": self.recommendation.to_dict(),
            "totalIngredients": self.total_ingredients,
            "overallScore": self.overall_score,
            "analysisMetadata": {
                "analyzedAt": self.analyzed_at.isoformat(),
                "ocrProvider": self.ocr_provider,
            },
        }
