from dataclasses import dataclass, field

CATEGORY_OCR = "ocr"
CATEGORY_LLM = "llm"
CATEGORY_IMAGE = "image"

BACKOFF_FIXED = "fixed"
BACKOFF_EXPONENTIAL = "exponential"

_VALID_BACKOFFS = frozenset({BACKOFF_FIXED, BACKOFF_EXPONENTIAL})


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try a call, how long to wait, and what counts as transient."""

    max_attempts: int = 3
    delay_seconds: float = 2.0
    backoff: str = BACKOFF_FIXED
    transient_statuses: frozenset[int] = field(default_factory=lambda: frozenset({429}))

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        if self.backoff not in _VALID_BACKOFFS:
            raise ValueError(
                f"Unknown backoff '{self.backoff}'. Choose from: {sorted(_VALID_BACKOFFS)}"
            )

    def is_transient(self, status_code: int) -> bool:
        return status_code in self.transient_statuses

    def delay_for(self, attempt: int) -> float:
        """Delay to sleep after the given 1-based failed attempt."""
        if self.backoff == BACKOFF_EXPONENTIAL:
            return self.delay_seconds * (2 ** (attempt - 1))
        return self.delay_seconds


@dataclass(frozen=True)
class CallCategory:
    """Per-category call configuration: retry policy plus optional daily cap.

    A daily_limit of 0 disables the quota gate for the category.
    """

    name: str
    policy: RetryPolicy = field(default_factory=RetryPolicy)
    daily_limit: int = 0
    timeout_seconds: float = 20.0
