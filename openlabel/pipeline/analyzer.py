from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from openlabel.analysis.models import LabelAnalysis
from openlabel.analysis.scorer import IngredientScorer
from openlabel.analysis.synthesizer import RecommendationSynthesizer
from openlabel.config.settings import Settings
from openlabel.external.client import ExternalCallClient
from openlabel.external.factory import ExternalCallClientFactory
from openlabel.llm.factory import ChatClientFactory
from openlabel.llm.product_checker import ProductCheck, ProductChecker
from openlabel.logging.logger import Log
from openlabel.ocr.factory import RecognizerFactory
from openlabel.ocr.orchestrator import RecognitionOrchestrator
from openlabel.pipeline.context import AnalysisContext, PipelineStep
from openlabel.pipeline.errors import ErrorPayload, describe_failure
from openlabel.pipeline.steps import (
    ExtractCandidatesStep,
    RecognizeTextStep,
    ScoreIngredientsStep,
    SynthesizeRecommendationStep,
)
from openlabel.reports.base import BaseReportStore
from openlabel.reports.factory import ReportStoreFactory
from openlabel.reports.models import Report


class LabelAnalyzer:
    """Entry point for label analysis and report management.

    Pipeline: recognize -> extract candidates -> score -> synthesize.
    A report is only written after the whole pipeline has succeeded.
    """

    def __init__(
        self,
        orchestrator: RecognitionOrchestrator,
        report_store: BaseReportStore,
        scorer: IngredientScorer | None = None,
        synthesizer: RecommendationSynthesizer | None = None,
        product_checker: ProductChecker | None = None,
        max_workers: int = 4,
        call_client: ExternalCallClient | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._call_client = call_client
        self._report_store = report_store
        self._product_checker = product_checker
        self._max_workers = max_workers
        self._steps: list[PipelineStep] = [
            RecognizeTextStep(orchestrator),
            ExtractCandidatesStep(),
            ScoreIngredientsStep(scorer or IngredientScorer()),
            SynthesizeRecommendationStep(synthesizer or RecommendationSynthesizer()),
        ]

    def analyze_image(self, image_reference: str) -> LabelAnalysis:
        """Run the full analysis for one label image."""
        Log.info(f"Analyzing {image_reference}")
        context = AnalysisContext(image_reference=image_reference)
        for step in self._steps:
            context = step.run(context)

        if context.recommendation is None:
            raise RuntimeError("Pipeline finished without a recommendation")
        return LabelAnalysis(
            image_url=image_reference,
            extracted_text=context.extracted_text,
            possible_ingredients=context.candidates,
            findings=context.findings,
            recommendation=context.recommendation,
            ocr_provider=self._orchestrator.provider,
        )

    def analyze_many(
        self, image_references: list[str], max_workers: int | None = None
    ) -> list[LabelAnalysis | ErrorPayload]:
        """Analyze several images concurrently. Results keep the input order."""
        workers = max(1, min(max_workers or self._max_workers, len(image_references) or 1))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.analyze_image, ref) for ref in image_references]
            results: list[LabelAnalysis | ErrorPayload] = []
            for ref, future in zip(image_references, futures):
                try:
                    results.append(future.result())
                except Exception as exc:
                    Log.error(f"Analysis of {ref} failed: {exc}")
                    results.append(describe_failure(exc))
        return results

    def save_report(
        self,
        analysis: LabelAnalysis | Mapping[str, Any],
        metadata: Mapping[str, Any] | None = None,
    ) -> Report:
        payload = analysis.to_dict() if isinstance(analysis, LabelAnalysis) else analysis
        return self._report_store.save(payload, metadata or {})

    def analyze_and_save(
        self, image_reference: str, metadata: Mapping[str, Any] | None = None
    ) -> Report:
        analysis = self.analyze_image(image_reference)
        return self.save_report(analysis, metadata)

    def list_reports(self) -> list[Report]:
        return self._report_store.list()

    def get_report(self, report_id: str) -> Report:
        return self._report_store.get(report_id)

    def record_purchase_decision(
        self, report_id: str, decision: str, notes: str = ""
    ) -> Report:
        return self._report_store.attach_decision(report_id, decision, notes)

    def check_product(self, image_reference: str) -> ProductCheck:
        """Recognize the label and ask the chat model whether the product exists."""
        if self._product_checker is None:
            raise RuntimeError("No product checker configured")
        text = self._orchestrator.recognize(image_reference)
        return self._product_checker.check(text)

    def close(self) -> None:
        """Release the HTTP connections of the call client this analyzer owns."""
        if self._call_client is not None:
            self._call_client.close()


def uses_database(settings: Settings) -> bool:
    return "postgres" in (
        settings.report_store_backend.lower(),
        settings.usage_store_backend.lower(),
    )


def build_analyzer(
    settings: Settings,
    call_client: ExternalCallClient | None = None,
) -> LabelAnalyzer:
    """Build a LabelAnalyzer with all adapters chosen from settings.

    A call client created here is owned by the analyzer and closed by
    LabelAnalyzer.close(); one passed in stays open.
    """
    owned = call_client is None
    client = call_client if call_client is not None else ExternalCallClientFactory.create(settings)
    recognizer = RecognizerFactory.create(settings, client)
    report_store = ReportStoreFactory.create(settings)
    chat_client = ChatClientFactory.create(settings, client)
    return LabelAnalyzer(
        orchestrator=RecognitionOrchestrator(recognizer),
        report_store=report_store,
        product_checker=ProductChecker(chat_client),
        max_workers=settings.analysis_max_workers,
        call_client=client if owned else None,
    )
