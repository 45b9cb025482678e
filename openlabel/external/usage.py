import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date


@dataclass
class UsageCounter:
    """Daily call count for one call category."""

    category: str
    day: date
    count: int = 0


class BaseUsageStore(ABC):
    """Contract for daily usage counters shared by concurrent calls."""

    @abstractmethod
    def current(self, category: str, today: date) -> UsageCounter:
        """Return the counter for today, reset to zero if it belongs to another day."""

    @abstractmethod
    def increment(self, category: str, today: date) -> UsageCounter:
        """Atomically add one successful call for today and return the new counter."""

    @abstractmethod
    def try_acquire(self, category: str, today: date, limit: int) -> UsageCounter | None:
        """Reserve one call for today if fewer than ``limit`` are counted.

        The check and the increment are one atomic step. Returns the new
        counter, or None when the limit is already reached.
        """

    @abstractmethod
    def release(self, category: str, day: date) -> None:
        """Give back a slot reserved by try_acquire on ``day``."""


class InMemoryUsageStore(BaseUsageStore):
    """Process-local usage counters guarded by a single lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, UsageCounter] = {}

    def current(self, category: str, today: date) -> UsageCounter:
        with self._lock:
            counter = self._fresh(category, today)
            return UsageCounter(category=category, day=counter.day, count=counter.count)

    def increment(self, category: str, today: date) -> UsageCounter:
        with self._lock:
            counter = self._fresh(category, today)
            counter.count += 1
            return UsageCounter(category=category, day=counter.day, count=counter.count)

    def try_acquire(self, category: str, today: date, limit: int) -> UsageCounter | None:
        with self._lock:
            counter = self._fresh(category, today)
            if counter.count >= limit:
                return None
            counter.count += 1
            return UsageCounter(category=category, day=counter.day, count=counter.count)

    def release(self, category: str, day: date) -> None:
        with self._lock:
            counter = self._counters.get(category)
            # a reservation from an earlier day was already reset
            if counter is not None and counter.day == day and counter.count > 0:
                counter.count -= 1

    def _fresh(self, category: str, today: date) -> UsageCounter:
        counter = self._counters.get(category)
        if counter is None or counter.day != today:
            counter = UsageCounter(category=category, day=today)
            self._counters[category] = counter
        return counter
