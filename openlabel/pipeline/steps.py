from openlabel.analysis.extractor import extract_candidates
from openlabel.analysis.scorer import IngredientScorer
from openlabel.analysis.synthesizer import RecommendationSynthesizer
from openlabel.logging.logger import Log
from openlabel.ocr.orchestrator import RecognitionOrchestrator
from openlabel.pipeline.context import AnalysisContext, PipelineStep

_TEXT_PREVIEW_CHARS = 200


class RecognizeTextStep(PipelineStep):
    def __init__(self, orchestrator: RecognitionOrchestrator) -> None:
        self._orchestrator = orchestrator

    def run(self, context: AnalysisContext) -> AnalysisContext:
        context.extracted_text = self._orchestrator.recognize(context.image_reference).strip()
        Log.info(
            f"Extracted {len(context.extracted_text)} chars from {context.image_reference}"
        )
        Log.debug(f"Extracted text: {context.extracted_text[:_TEXT_PREVIEW_CHARS]}")
        return context


class ExtractCandidatesStep(PipelineStep):
    def run(self, context: AnalysisContext) -> AnalysisContext:
        context.candidates = extract_candidates(context.extracted_text)
        Log.info(f"Found {len(context.candidates)} ingredient candidates")
        return context


class ScoreIngredientsStep(PipelineStep):
    def __init__(self, scorer: IngredientScorer) -> None:
        self._scorer = scorer

    def run(self, context: AnalysisContext) -> AnalysisContext:
        context.findings = self._scorer.score_all(context.candidates)
        flagged = sum(1 for f in context.findings if f.warnings)
        Log.info(f"Scored {len(context.findings)} ingredients, {flagged} with warnings")
        return context


class SynthesizeRecommendationStep(PipelineStep):
    def __init__(self, synthesizer: RecommendationSynthesizer) -> None:
        self._synthesizer = synthesizer

    def run(self, context: AnalysisContext) -> AnalysisContext:
        context.recommendation = self._synthesizer.synthesize(context.findings)
        Log.info(
            f"Recommendation: {context.recommendation.recommendation} "
            f"(grade {context.recommendation.health_grade}, "
            f"confidence {context.recommendation.confidence}%)"
        )
        return context
