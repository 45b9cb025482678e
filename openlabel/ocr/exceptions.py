from typing import ClassVar


class RecognitionError(Exception):
    """Base exception for text-recognition failures."""

    kind: ClassVar[str] = "recognition_error"


class RecognitionFailedError(RecognitionError):
    """Raised when the backend reports the job as failed."""

    kind: ClassVar[str] = "recognition_failed"


class RecognitionTimedOutError(RecognitionError):
    """Raised when the job does not reach a terminal state within the poll budget."""

    kind: ClassVar[str] = "recognition_timed_out"
