import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

STATE_SUBMITTED = "submitted"
STATE_RUNNING = "running"
STATE_SUCCEEDED = "succeeded"
STATE_FAILED = "failed"
STATE_TIMED_OUT = "timed_out"

TERMINAL_STATES = frozenset({STATE_SUCCEEDED, STATE_FAILED, STATE_TIMED_OUT})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_job_id() -> str:
    return str(uuid.uuid4())


@dataclass
class RecognitionJob:
    """One text-recognition request, alive only until its text is returned."""

    image_reference: str
    poll_handle: str | None = None
    state: str = STATE_SUBMITTED
    text: str | None = None
    error: str | None = None
    poll_attempts: int = 0
    id: str = field(default_factory=_new_job_id)
    submitted_at: datetime = field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
