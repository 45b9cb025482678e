from openlabel.config.settings import Settings
from openlabel.external.client import ExternalCallClient
from openlabel.ocr.azure_read_adapter import AzureReadAdapter
from openlabel.ocr.base import BaseRecognizer
from openlabel.ocr.tesseract_adapter import TesseractAdapter, configure_tesseract_cmd


class RecognizerFactory:
    """Creates the recognition backend chosen at startup."""

    PROVIDERS = ("azure", "tesseract")

    @classmethod
    def create(cls, settings: Settings, call_client: ExternalCallClient) -> BaseRecognizer:
        provider = settings.ocr_provider.lower()
        if provider == "azure":
            return AzureReadAdapter(
                call_client=call_client,
                endpoint=settings.azure_ocr_endpoint,
                api_key=settings.azure_ocr_key,
                api_version=settings.azure_ocr_api_version,
                poll_interval_seconds=settings.ocr_poll_interval_seconds,
                max_poll_attempts=settings.ocr_poll_max_attempts,
            )
        if provider == "tesseract":
            configure_tesseract_cmd(settings.tesseract_cmd)
            return TesseractAdapter(call_client=call_client, lang=settings.tesseract_lang)
        raise ValueError(
            f"Unknown OCR provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
