from openlabel.logging.logger import Log
from openlabel.ocr.base import BaseRecognizer


class RecognitionOrchestrator:
    """Runs one recognition job to completion: submit, then await the text.

    The job never outlives the call. Errors from the backend or the
    external call client propagate unchanged.
    """

    def __init__(self, recognizer: BaseRecognizer) -> None:
        self._recognizer = recognizer

    @property
    def provider(self) -> str:
        return self._recognizer.name

    def recognize(self, image_reference: str) -> str:
        job = self._recognizer.submit(image_reference)
        Log.debug(f"Recognition job {job.id} poll handle: {job.poll_handle}")
        try:
            text = self._recognizer.await_result(job)
        except Exception:
            Log.error(f"Recognition job {job.id} ended in state {job.state}: {job.error}")
            raise
        Log.info(f"Recognition job {job.id} finished: {len(text)} chars extracted")
        return text
