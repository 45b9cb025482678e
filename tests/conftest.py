from collections.abc import Callable
from typing import Any

import httpx
import pytest

from openlabel.analysis.scorer import IngredientScorer
from openlabel.analysis.synthesizer import RecommendationSynthesizer
from openlabel.external.client import ExternalCallClient
from openlabel.external.policy import (
    CATEGORY_IMAGE,
    CATEGORY_LLM,
    CATEGORY_OCR,
    CallCategory,
    RetryPolicy,
)

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def sleeps() -> list[float]:
    """Collects every delay an ExternalCallClient or adapter would have slept."""
    return []


@pytest.fixture()
def make_call_client(sleeps: list[float]) -> Callable[..., ExternalCallClient]:
    """Build an ExternalCallClient whose HTTP traffic is answered by a handler."""

    def _make(
        handler: Handler,
        *,
        ocr_daily_limit: int = 0,
        llm_daily_limit: int = 0,
        max_attempts: int = 3,
        delay_seconds: float = 2.0,
    ) -> ExternalCallClient:
        policy = RetryPolicy(max_attempts=max_attempts, delay_seconds=delay_seconds)
        categories = [
            CallCategory(name=CATEGORY_OCR, policy=policy, daily_limit=ocr_daily_limit),
            CallCategory(name=CATEGORY_LLM, policy=policy, daily_limit=llm_daily_limit),
            CallCategory(name=CATEGORY_IMAGE, policy=policy),
        ]
        return ExternalCallClient(
            categories,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
            sleep=sleeps.append,
        )

    return _make


@pytest.fixture()
def label_text() -> str:
    return (
        "CRUNCHY OAT BARS\n"
        "Ingredients: organic oats, sugar, partially hydrogenated soybean oil, "
        "sea salt, whole grain wheat, vitamin e"
    )


@pytest.fixture()
def sample_analysis(label_text: str) -> dict[str, Any]:
    """A stored-form analysis as produced by LabelAnalysis.to_dict()."""
    scorer = IngredientScorer()
    findings = scorer.score_all(["organic oats", "sugar", "sodium benzoate"])
    recommendation = RecommendationSynthesizer().synthesize(findings)
    return {
        "imageUrl": "https://example.com/label.jpg",
        "extractedText": label_text,
        "possibleIngredients": [f.name for f in findings],
        "analysisResults": [f.to_dict() for f in findings],
        "productRecommendation": recommendation.to_dict(),
        "totalIngredients": len(findings),
        "overallScore": recommendation.summary.overall_score,
        "analysisMetadata": {"analyzedAt": "2026-01-05T10:00:00+00:00", "ocrProvider": "azure"},
    }
