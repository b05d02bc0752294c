"""Poem generation with Claude on Amazon Bedrock via the Anthropic SDK."""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from config import DEFAULT_AWS_REGION, DEFAULT_BEDROCK_MODEL_ID, cap_timeout
from errors import GenerationFailed
from prompts import (
    MAX_TOKENS,
    STOP_SEQUENCES,
    SYSTEM_PROMPT,
    TEMPERATURE,
    TOP_K,
    TOP_P,
    build_prompt,
)

LOGGER = logging.getLogger(__name__)


class BedrockPoemGenerator:
    """Calls the Messages API on Bedrock and returns the first text block verbatim."""

    def __init__(
        self,
        model_id: str = DEFAULT_BEDROCK_MODEL_ID,
        aws_region: str = DEFAULT_AWS_REGION,
        client: Any | None = None,
        timeout: float | None = None,
    ) -> None:
        self.model_id = model_id
        self.client = client or anthropic.AnthropicBedrock(aws_region=aws_region)
        self.timeout = timeout

    def request_kwargs(self, description: str) -> dict[str, Any]:
        """Build the fixed ``messages.create`` arguments for one description."""
        return {
            "model": self.model_id,
            "system": SYSTEM_PROMPT,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": build_prompt(description)}],
                }
            ],
            "max_tokens": MAX_TOKENS,
            "top_p": TOP_P,
            "top_k": TOP_K,
            "temperature": TEMPERATURE,
            "stop_sequences": list(STOP_SEQUENCES),
        }

    def generate(self, description: str, timeout: float | None = None) -> str:
        """Return the poem text for ``description``.

        ``timeout`` is capped by the generator's configured timeout. Any SDK
        error, or a response without a leading text block, raises
        ``GenerationFailed``.
        """
        kwargs = self.request_kwargs(description)
        effective_timeout = cap_timeout(timeout, self.timeout)
        if effective_timeout:
            kwargs["timeout"] = effective_timeout

        LOGGER.debug("Calling Bedrock model=%s max_tokens=%s", self.model_id, MAX_TOKENS)
        try:
            response = self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise GenerationFailed(f"error from Bedrock: {exc}") from exc

        return extract_text(response)


def extract_text(response: Any) -> str:
    """Return the first content block's text, or fail if there is none."""
    content = getattr(response, "content", None) or []
    if not content:
        raise GenerationFailed("Bedrock returned no content")

    first = content[0]
    text = getattr(first, "text", None)
    if getattr(first, "type", "text") != "text" or not isinstance(text, str):
        raise GenerationFailed(f"unexpected Bedrock content block: {getattr(first, 'type', None)!r}")
    return text
