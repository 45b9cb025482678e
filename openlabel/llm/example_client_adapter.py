"""Example chat client adapter.

No network calls. Useful for local development and tests, and as a template
for new provider adapters: implement BaseChatClient and register the
provider in ChatClientFactory.
"""

from openlabel.llm.client_base import BaseChatClient


class ExampleChatClient(BaseChatClient):
    """Returns a fixed reply for every prompt."""

    DEFAULT_REPLY = "Product not found"

    def __init__(self, reply: str = DEFAULT_REPLY) -> None:
        self._reply = reply

    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        _ = system_prompt, user_prompt
        return self._reply
