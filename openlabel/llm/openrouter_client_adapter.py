from openlabel.external.client import ExternalCallClient
from openlabel.external.exceptions import MalformedUpstreamResponseError
from openlabel.external.policy import CATEGORY_LLM
from openlabel.llm.client_base import BaseChatClient
from openlabel.logging.logger import Log


class OpenRouterChatClient(BaseChatClient):
    """Chat client for OpenAI-compatible chat-completions endpoints.

    Calls go through the shared ExternalCallClient under the llm category,
    so they count against the daily llm quota and follow its retry policy.
    """

    def __init__(
        self,
        *,
        call_client: ExternalCallClient,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        max_tokens: int = 512,
    ) -> None:
        self._client = call_client
        self._api_key = api_key
        self._model = model
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._max_tokens = max_tokens

    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        request = self._client.build_request(
            "POST",
            self._url,
            CATEGORY_LLM,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json={
                "model": self._model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "max_tokens": self._max_tokens,
            },
        )
        response = self._client.invoke(request, CATEGORY_LLM)
        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            Log.error(
                f"Malformed chat completion response: status={response.status_code} "
                f"body={response.text}"
            )
            raise MalformedUpstreamResponseError(
                f"Chat completion response has no message content: {exc}"
            ) from exc
        if content is None:
            raise MalformedUpstreamResponseError("Chat completion returned empty content")
        return str(content)
