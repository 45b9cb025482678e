from openlabel.ocr.base import BaseRecognizer
from openlabel.ocr.factory import RecognizerFactory
from openlabel.ocr.orchestrator import RecognitionOrchestrator

__all__ = ["BaseRecognizer", "RecognitionOrchestrator", "RecognizerFactory"]
