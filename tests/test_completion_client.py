"""
Tests for CompletionClient.

The openai SDK client is replaced by a SimpleNamespace stand-in exposing
``chat.completions.create``.
"""

from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from openai import APIConnectionError

from sheet2sql.config import AssistantSettings
from sheet2sql.exceptions.assistant_exceptions import CompletionError, ConfigurationError
from sheet2sql.services.completion_client import CompletionClient


def make_sdk(create: Any) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def make_response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5),
    )


class TestCompletionClient:
    """Tests for CompletionClient.complete."""

    def test_returns_completion_text(self, settings: AssistantSettings) -> None:
        captured: dict[str, Any] = {}

        def create(**kwargs: Any) -> SimpleNamespace:
            captured.update(kwargs)
            return make_response('{"ok": true}')

        client = CompletionClient(settings, sdk_client=make_sdk(create))
        messages = [{"role": "user", "content": "hi"}]

        text = client.complete(messages, temperature=0.2, max_tokens=100)

        assert text == '{"ok": true}'
        assert captured == {
            "model": "test-model",
            "messages": messages,
            "temperature": 0.2,
            "max_tokens": 100,
        }

    def test_missing_api_key_raises_configuration_error(self, settings: AssistantSettings) -> None:
        client = CompletionClient(settings.model_copy(update={"api_key": ""}))

        with pytest.raises(ConfigurationError) as exc_info:
            client.complete([{"role": "user", "content": "hi"}], temperature=0.1, max_tokens=10)

        assert exc_info.value.error_code == "CONFIGURATION_ERROR"

    def test_sdk_error_becomes_completion_error(self, settings: AssistantSettings) -> None:
        def create(**kwargs: Any) -> SimpleNamespace:
            raise APIConnectionError(request=httpx.Request("POST", "https://llm.invalid/v1/chat/completions"))

        client = CompletionClient(settings, sdk_client=make_sdk(create))

        with pytest.raises(CompletionError) as exc_info:
            client.complete([{"role": "user", "content": "hi"}], temperature=0.1, max_tokens=10)

        assert exc_info.value.error_code == "COMPLETION_ERROR"
        assert exc_info.value.details["model"] == "test-model"

    @pytest.mark.parametrize("content", [None, ""])
    def test_empty_completion_raises(self, settings: AssistantSettings, content: str | None) -> None:
        client = CompletionClient(settings, sdk_client=make_sdk(lambda **kwargs: make_response(content)))

        with pytest.raises(CompletionError):
            client.complete([{"role": "user", "content": "hi"}], temperature=0.1, max_tokens=10)

    def test_no_choices_raises(self, settings: AssistantSettings) -> None:
        response = SimpleNamespace(choices=[], usage=None)
        client = CompletionClient(settings, sdk_client=make_sdk(lambda **kwargs: response))

        with pytest.raises(CompletionError):
            client.complete([{"role": "user", "content": "hi"}], temperature=0.1, max_tokens=10)

    def test_sdk_client_is_built_lazily(self, settings: AssistantSettings) -> None:
        client = CompletionClient(settings)

        assert client._client is None
        assert client.model == "test-model"
