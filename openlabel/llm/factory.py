from openlabel.config.settings import Settings
from openlabel.external.client import ExternalCallClient
from openlabel.llm.client_base import BaseChatClient
from openlabel.llm.example_client_adapter import ExampleChatClient
from openlabel.llm.openrouter_client_adapter import OpenRouterChatClient


class ChatClientFactory:
    """Creates the configured chat model client."""

    PROVIDERS = ("example", "openrouter")

    @classmethod
    def create(cls, settings: Settings, call_client: ExternalCallClient) -> BaseChatClient:
        provider = settings.llm_provider.lower()
        if provider == "example":
            return ExampleChatClient()
        if provider == "openrouter":
            return OpenRouterChatClient(
                call_client=call_client,
                api_key=settings.llm_api_key,
                model=settings.llm_model_name,
                base_url=settings.llm_base_url,
            )
        raise ValueError(
            f"Unknown LLM provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
