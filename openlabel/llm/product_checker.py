from dataclasses import dataclass
from typing import Any

from openlabel.llm.client_base import BaseChatClient
from openlabel.logging.logger import Log

UNKNOWN_PRODUCT = "Unknown"

SYSTEM_PROMPT = "You are a helpful nutrition assistant."

PROMPT_TEMPLATE = (
    'You are an expert in food products. I have a product named "{name}". '
    "Does this product exist? If yes, give a short description and main category. "
    'If unknown, say "Product not found".'
)


@dataclass(frozen=True)
class ProductCheck:
    extracted_text: str
    guessed_product_name: str
    llm_check: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "extractedText": self.extracted_text,
            "guessedProductName": self.guessed_product_name,
            "llmCheck": self.llm_check,
        }


def guess_product_name(text: str) -> str:
    """The first non-blank line of a label is usually the product name."""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return UNKNOWN_PRODUCT


class ProductChecker:
    """Asks a chat model whether the product named on a label exists."""

    def __init__(self, client: BaseChatClient) -> None:
        self._client = client

    def check(self, extracted_text: str) -> ProductCheck:
        name = guess_product_name(extracted_text)
        Log.info(f"Checking product '{name}'")
        reply = self._client.complete(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=PROMPT_TEMPLATE.format(name=name),
        )
        return ProductCheck(
            extracted_text=extracted_text,
            guessed_product_name=name,
            llm_check=reply,
        )
