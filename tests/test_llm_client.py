from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from errors import ConfigMissing, GenerationFailed
from llm_client import OpenAIPoemGenerator
from prompts import build_prompt


def _mock_client(content: str | None) -> MagicMock:
    mock_choice = MagicMock()
    mock_choice.message.content = content
    mock_response = MagicMock()
    mock_response.choices = [mock_choice]

    mock_client = MagicMock()
    mock_client.chat.completions.create.return_value = mock_response
    return mock_client


def test_generate_returns_content_verbatim() -> None:
    client = _mock_client("Stone eyes watch...\n")

    result = OpenAIPoemGenerator(client=client, model="gpt-test").generate("a stone head")

    assert result == "Stone eyes watch...\n"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["messages"] == [
        {"role": "system", "content": "Respond with just the poem, nothing else."},
        {"role": "user", "content": build_prompt("a stone head")},
    ]
    assert kwargs["max_tokens"] == 500
    assert "top_k" not in kwargs


def test_generate_empty_content_is_generation_failed() -> None:
    with pytest.raises(GenerationFailed, match="empty"):
        OpenAIPoemGenerator(client=_mock_client(None)).generate("x")


def test_generate_api_error_is_generation_failed() -> None:
    client = MagicMock()
    request = httpx.Request("POST", "https://api.openai.test")
    client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)

    with pytest.raises(GenerationFailed, match="OpenAI"):
        OpenAIPoemGenerator(client=client).generate("x")


def test_generator_requires_api_key_without_client() -> None:
    with pytest.raises(ConfigMissing, match="OPENAI_API_KEY"):
        OpenAIPoemGenerator(api_key=None)


def test_generator_builds_client_from_api_key() -> None:
    with patch("llm_client.OpenAI") as mock_openai:
        OpenAIPoemGenerator(api_key="test-key")

    mock_openai.assert_called_once_with(api_key="test-key")


def test_generate_call_timeout_is_capped_by_configured_timeout() -> None:
    client = _mock_client("verse")

    OpenAIPoemGenerator(client=client, timeout=5.0).generate("x", timeout=600.0)

    assert client.chat.completions.create.call_args.kwargs["timeout"] == 5.0
