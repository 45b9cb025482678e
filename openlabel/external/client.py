"""Rate-limited, retrying HTTP invocation shared by every outbound call."""

import time
from collections.abc import Callable
from datetime import date
from typing import Any

import httpx

from openlabel.external.exceptions import (
    QuotaExceededError,
    RetriesExhaustedError,
    UpstreamError,
)
from openlabel.external.policy import CallCategory
from openlabel.external.usage import BaseUsageStore, InMemoryUsageStore
from openlabel.logging.logger import Log

_BODY_PREVIEW_CHARS = 2000


class ExternalCallClient:
    """Sends requests under a per-category quota gate and retry policy.

    Transient statuses and network failures are retried here and nowhere
    else; every other failure surfaces to the caller as a typed error.
    """

    def __init__(
        self,
        categories: list[CallCategory],
        *,
        usage_store: BaseUsageStore | None = None,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._categories = {c.name: c for c in categories}
        self._usage = usage_store if usage_store is not None else InMemoryUsageStore()
        self._http = http_client if http_client is not None else httpx.Client()
        self._sleep = sleep
        self._today = today

    def build_request(
        self, method: str, url: str, category: str, **kwargs: Any
    ) -> httpx.Request:
        """Build a request carrying the category's timeout."""
        config = self._category(category)
        return self._http.build_request(
            method, url, timeout=config.timeout_seconds, **kwargs
        )

    def invoke(self, request: httpx.Request, category: str) -> httpx.Response:
        """Send the request and return the first successful response.

        Limited categories reserve their quota slot before anything is sent;
        the slot is given back when the call fails, so only successes count.

        Raises:
            QuotaExceededError: the category's daily cap is reached; nothing is sent.
            RetriesExhaustedError: transient failures outlasted the retry policy.
            UpstreamError: the upstream answered with a non-transient error status.
        """
        config = self._category(category)
        reserved_day = self._reserve(config)
        try:
            response = self._send(request, config)
        except Exception:
            if reserved_day is not None:
                self._usage.release(category, reserved_day)
            raise

        if reserved_day is None:
            counter = self._usage.increment(category, self._today())
            Log.debug(f"{category} usage today: {counter.count}")
        return response

    def _send(self, request: httpx.Request, config: CallCategory) -> httpx.Response:
        category = config.name
        policy = config.policy

        last_status: int | None = None
        last_exc: Exception | None = None
        for attempt in range(1, policy.max_attempts + 1):
            try:
                response = self._http.send(request)
            except httpx.TransportError as exc:
                last_exc = exc
                last_status = None
                Log.warning(
                    f"{category} call to {request.url} failed on attempt "
                    f"{attempt}/{policy.max_attempts}: {exc}"
                )
            else:
                if not response.is_error:
                    return response
                if not policy.is_transient(response.status_code):
                    body = response.text
                    Log.error(
                        f"{category} call to {request.url} rejected with "
                        f"{response.status_code}: {body[:_BODY_PREVIEW_CHARS]}"
                    )
                    raise UpstreamError(
                        f"{category} upstream returned {response.status_code}",
                        category=category,
                        status_code=response.status_code,
                        body=body,
                    )
                last_status = response.status_code
                last_exc = None
                Log.warning(
                    f"{category} call rate-limited ({response.status_code}), "
                    f"attempt {attempt}/{policy.max_attempts}"
                )

            if attempt < policy.max_attempts:
                self._sleep(policy.delay_for(attempt))

        message = f"{category} call failed after {policy.max_attempts} attempts"
        Log.error(message)
        raise RetriesExhaustedError(
            message,
            category=category,
            attempts=policy.max_attempts,
            last_status=last_status,
        ) from last_exc

    def usage_today(self, category: str) -> int:
        return self._usage.current(category, self._today()).count

    def close(self) -> None:
        self._http.close()

    def _reserve(self, config: CallCategory) -> date | None:
        """Take one quota slot for a limited category and return its day."""
        if config.daily_limit <= 0:
            return None
        today = self._today()
        counter = self._usage.try_acquire(config.name, today, config.daily_limit)
        if counter is None:
            Log.warning(
                f"{config.name} daily limit of {config.daily_limit} calls reached"
            )
            raise QuotaExceededError(
                f"Daily limit of {config.daily_limit} {config.name} calls reached",
                category=config.name,
            )
        Log.debug(f"{config.name} usage today: {counter.count}")
        return today

    def _category(self, name: str) -> CallCategory:
        config = self._categories.get(name)
        if config is None:
            raise ValueError(
                f"Unknown call category '{name}'. Choose from: {sorted(self._categories)}"
            )
        return config
