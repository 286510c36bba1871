from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError

from guided_journal.config import settings
from guided_journal.core.errors import UpstreamFailureError
from guided_journal.services.completion_client import CompletionClient


def _response(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def test_complete_sends_system_and_user_messages():
    openai_client = MagicMock()
    openai_client.chat.completions.create.return_value = _response("Hello there")
    client = CompletionClient(client=openai_client, model="gpt-test", max_tokens=50, temperature=0.2)

    assert client.complete("I am grateful", "Be kind") == "Hello there"

    openai_client.chat.completions.create.assert_called_once_with(
        model="gpt-test",
        messages=[
            {"role": "system", "content": "Be kind"},
            {"role": "user", "content": "I am grateful"},
        ],
        max_tokens=50,
        temperature=0.2,
    )


def test_defaults_come_from_settings():
    client = CompletionClient(client=MagicMock())

    assert client.model == settings.OPENAI_MODEL
    assert client.max_tokens == settings.OPENAI_MAX_TOKENS
    assert client.temperature == settings.OPENAI_TEMPERATURE


def test_missing_content_returns_empty_string():
    openai_client = MagicMock()
    openai_client.chat.completions.create.return_value = _response(None)

    assert CompletionClient(client=openai_client).complete("x", "y") == ""


def test_api_error_raises_upstream_failure():
    openai_client = MagicMock()
    openai_client.chat.completions.create.side_effect = OpenAIError("connection reset")

    with pytest.raises(UpstreamFailureError):
        CompletionClient(client=openai_client).complete("x", "y")


def test_missing_api_key_is_rejected_on_first_call(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    client = CompletionClient()

    with pytest.raises(RuntimeError):
        client.complete("x", "y")


def test_sdk_client_is_built_lazily(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    client = CompletionClient()

    assert client._client is None
    assert client.client is client.client
