from abc import ABC, abstractmethod

from openlabel.ocr.models import RecognitionJob


class BaseRecognizer(ABC):
    """Contract for all text-recognition backends."""

    name: str = "base"

    @abstractmethod
    def submit(self, image_reference: str) -> RecognitionJob:
        """Start recognition of the referenced image.

        Args:
            image_reference: Publicly fetchable URL (or local path) of the label photo.

        Returns:
            RecognitionJob tracking the backend's work.

        Raises:
            ExternalCallError: on any outbound call failure.
            MalformedUpstreamResponseError: if the backend returns no poll handle.
        """

    @abstractmethod
    def await_result(self, job: RecognitionJob) -> str:
        """Block until the job is terminal and return the recognized text.

        Raises:
            RecognitionFailedError: the backend reported failure.
            RecognitionTimedOutError: the job did not finish within the poll budget.
            ExternalCallError: on any outbound call failure.
        """
