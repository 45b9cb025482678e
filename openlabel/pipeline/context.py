from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from openlabel.analysis.models import IngredientFinding, Recommendation


@dataclass(slots=True)
class AnalysisContext:
    image_reference: str
    extracted_text: str = ""
    candidates: list[str] = field(default_factory=list)
    findings: list[IngredientFinding] = field(default_factory=list)
    recommendation: Recommendation | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: AnalysisContext) -> AnalysisContext:
        raise NotImplementedError
