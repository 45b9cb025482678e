import io
from pathlib import Path

import pytesseract
from PIL import Image, ImageOps

from openlabel.external.client import ExternalCallClient
from openlabel.external.policy import CATEGORY_IMAGE
from openlabel.logging.logger import Log
from openlabel.ocr.base import BaseRecognizer
from openlabel.ocr.exceptions import RecognitionFailedError
from openlabel.ocr.models import STATE_FAILED, STATE_RUNNING, STATE_SUCCEEDED, RecognitionJob


def configure_tesseract_cmd(tesseract_cmd: str) -> None:
    """Point pytesseract at a tesseract binary for the whole process.

    pytesseract reads the command from a module global, so this is called
    once at startup. An empty value keeps the binary found on PATH.
    """
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd


class TesseractAdapter(BaseRecognizer):
    """Recognizes label text locally with Tesseract. No polling: submit does all the work."""

    name = "tesseract"

    TARGET_HEIGHT = 1600

    def __init__(
        self,
        *,
        call_client: ExternalCallClient | None = None,
        lang: str = "eng",
    ) -> None:
        self._client = call_client
        self._lang = lang

    def submit(self, image_reference: str) -> RecognitionJob:
        job = RecognitionJob(image_reference=image_reference, state=STATE_RUNNING)
        raw = self._load(image_reference)
        try:
            with Image.open(io.BytesIO(raw)) as image:
                processed = self._process(image)
            text = pytesseract.image_to_string(processed, lang=self._lang)
        except Exception as exc:
            job.state = STATE_FAILED
            job.error = str(exc)
            raise RecognitionFailedError(f"tesseract recognition failed: {exc}") from exc

        job.state = STATE_SUCCEEDED
        job.text = text
        Log.info(f"Recognition job {job.id} completed locally: {len(text)} chars")
        return job

    def await_result(self, job: RecognitionJob) -> str:
        if job.state != STATE_SUCCEEDED or job.text is None:
            raise RecognitionFailedError(
                f"Recognition job {job.id} did not succeed: {job.error or job.state}"
            )
        return job.text

    def _load(self, image_reference: str) -> bytes:
        if image_reference.startswith(("http://", "https://")):
            if self._client is None:
                raise ValueError("An ExternalCallClient is required to fetch remote images")
            request = self._client.build_request("GET", image_reference, CATEGORY_IMAGE)
            return self._client.invoke(request, CATEGORY_IMAGE).content
        path = Path(image_reference)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")
        return path.read_bytes()

    def _process(self, image: Image.Image) -> Image.Image:
        """Grayscale, stretch contrast, and scale to a height Tesseract reads well."""
        gray = ImageOps.autocontrast(ImageOps.grayscale(image))
        width, height = gray.size
        if height == 0:
            return gray
        scale = self.TARGET_HEIGHT / height
        return gray.resize((max(1, round(width * scale)), self.TARGET_HEIGHT))
