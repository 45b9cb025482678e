from abc import ABC, abstractmethod


class BaseChatClient(ABC):
    """Contract for provider-specific chat model clients."""

    @abstractmethod
    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        """Return the model's reply as plain text."""
