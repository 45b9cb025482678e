from typing import ClassVar

from openlabel.config.settings import Settings
from openlabel.database.repositories.usage_repository import PostgresUsageRepository
from openlabel.external.client import ExternalCallClient
from openlabel.external.policy import (
    CATEGORY_IMAGE,
    CATEGORY_LLM,
    CATEGORY_OCR,
    CallCategory,
    RetryPolicy,
)
from openlabel.external.usage import BaseUsageStore, InMemoryUsageStore


class UsageStoreFactory:
    """Creates the configured usage counter backend."""

    ADAPTERS: ClassVar[dict[str, type[BaseUsageStore]]] = {
        "memory": InMemoryUsageStore,
        "postgres": PostgresUsageRepository,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseUsageStore:
        backend = settings.usage_store_backend.lower()
        adapter_cls = cls.ADAPTERS.get(backend)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown usage store backend '{backend}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()


class ExternalCallClientFactory:
    """Builds the shared ExternalCallClient with one category per outbound concern."""

    @classmethod
    def create(
        cls,
        settings: Settings,
        usage_store: BaseUsageStore | None = None,
    ) -> ExternalCallClient:
        store = usage_store if usage_store is not None else UsageStoreFactory.create(settings)
        return ExternalCallClient(cls.categories(settings), usage_store=store)

    @classmethod
    def categories(cls, settings: Settings) -> list[CallCategory]:
        return [
            CallCategory(
                name=CATEGORY_OCR,
                policy=RetryPolicy(
                    max_attempts=settings.ocr_max_attempts,
                    delay_seconds=settings.ocr_retry_delay_seconds,
                    backoff=settings.ocr_retry_backoff.lower(),
                ),
                daily_limit=settings.ocr_daily_limit,
                timeout_seconds=settings.ocr_http_timeout_seconds,
            ),
            CallCategory(
                name=CATEGORY_LLM,
                policy=RetryPolicy(
                    max_attempts=settings.llm_max_attempts,
                    delay_seconds=settings.llm_retry_delay_seconds,
                    backoff=settings.llm_retry_backoff.lower(),
                ),
                daily_limit=settings.llm_daily_limit,
                timeout_seconds=settings.llm_timeout_seconds,
            ),
            CallCategory(
                name=CATEGORY_IMAGE,
                policy=RetryPolicy(
                    max_attempts=settings.image_max_attempts,
                    delay_seconds=settings.image_retry_delay_seconds,
                ),
                timeout_seconds=settings.ocr_http_timeout_seconds,
            ),
        ]
