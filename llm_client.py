"""OpenAI chat-completions poem generator."""

from __future__ import annotations

import logging
from typing import Any

import openai
from openai import OpenAI

from config import DEFAULT_OPENAI_MODEL, cap_timeout
from errors import ConfigMissing, GenerationFailed
from prompts import MAX_TOKENS, SYSTEM_PROMPT, TEMPERATURE, TOP_P, build_prompt

LOGGER = logging.getLogger(__name__)


class OpenAIPoemGenerator:
    """Same prompt as the Bedrock generator; OpenAI has no top_k, so it is left out."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_MODEL,
        client: Any | None = None,
        timeout: float | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ConfigMissing("OPENAI_API_KEY environment variable is required")
            client = OpenAI(api_key=api_key)
        self.client = client
        self.model = model
        self.timeout = timeout

    def generate(self, description: str, timeout: float | None = None) -> str:
        """Return the poem text for ``description``; raises ``GenerationFailed`` on any failure."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "temperature": TEMPERATURE,
            "top_p": TOP_P,
            "max_tokens": MAX_TOKENS,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(description)},
            ],
        }
        effective_timeout = cap_timeout(timeout, self.timeout)
        if effective_timeout:
            kwargs["timeout"] = effective_timeout

        LOGGER.debug("Calling OpenAI model=%s", self.model)
        try:
            response = self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            raise GenerationFailed(f"error from OpenAI: {exc}") from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise GenerationFailed("unexpected OpenAI response shape") from exc
        if not content:
            raise GenerationFailed("OpenAI returned an empty response")
        return content
