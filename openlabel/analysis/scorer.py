from openlabel.analysis import rules
from openlabel.analysis.models import (
    CATEGORY_BENEFICIAL,
    CATEGORY_HARMFUL,
    CATEGORY_MIXED,
    CATEGORY_NEUTRAL,
    SEVERITY_HIGH,
    SEVERITY_LOW,
    SEVERITY_MEDIUM,
    IngredientFinding,
)


class IngredientScorer:
    """Scores ingredient candidates against the nutrition rule table.

    Every rule that matches contributes its delta; nothing short-circuits.
    Overlapping rules double-count on purpose ("sodium benzoate" is both a
    harmful marker and a sodium mention).
    """

    def __init__(
        self,
        harmful_markers: tuple[str, ...] = rules.HARMFUL_MARKERS,
        healthy_markers: tuple[str, ...] = rules.HEALTHY_MARKERS,
    ) -> None:
        self._harmful = harmful_markers
        self._healthy = healthy_markers

    def score(self, candidate: str) -> IngredientFinding:
        lowered = candidate.lower()
        score = 0
        warnings: list[str] = []
        benefits: list[str] = []
        severity = SEVERITY_LOW
        harmful_hit = False
        healthy_hit = False

        for marker in self._harmful:
            if marker in lowered:
                score += rules.HARMFUL_DELTA
                warnings.append(f"Contains {marker} - avoid for health")
                harmful_hit = True
                severity = (
                    SEVERITY_HIGH
                    if any(term in marker for term in rules.HIGH_SEVERITY_TERMS)
                    else SEVERITY_MEDIUM
                )

        for marker in self._healthy:
            if marker in lowered:
                score += rules.HEALTHY_DELTA
                benefits.append(f"Contains {marker} - good for health")
                healthy_hit = True

        if rules.SUGAR_TERM in lowered and rules.SUGAR_NEGATION not in lowered:
            score += rules.SUGAR_DELTA
            warnings.append("High sugar content")
            severity = SEVERITY_MEDIUM

        if any(term in lowered for term in rules.SODIUM_TERMS):
            score += rules.SODIUM_DELTA
            warnings.append("High sodium content")

        if any(term in lowered for term in rules.VITAMIN_TERMS):
            score += rules.VITAMIN_DELTA
            benefits.append("Contains vitamins/minerals")

        if any(term in lowered for term in rules.FIBER_TERMS):
            score += rules.FIBER_DELTA
            benefits.append("Good source of fiber")

        return IngredientFinding(
            name=candidate,
            health_score=score,
            warnings=warnings,
            benefits=benefits,
            category=_category(harmful_hit, healthy_hit),
            severity=severity,
        )

    def score_all(self, candidates: list[str]) -> list[IngredientFinding]:
        return [self.score(c) for c in candidates]


def _category(harmful_hit: bool, healthy_hit: bool) -> str:
    if harmful_hit and healthy_hit:
        return CATEGORY_MIXED
    if harmful_hit:
        return CATEGORY_HARMFUL
    if healthy_hit:
        return CATEGORY_BENEFICIAL
    return CATEGORY_NEUTRAL
