from __future__ import annotations

from typing import Callable

import pytest

from tweetjuice.common.config import Settings
from tweetjuice.common.schema import ChatMessage, GenerationOptions
from tweetjuice.serve.chat_client import ChatClient, ProviderError

MESSAGES = [ChatMessage("system", "be brief"), ChatMessage("user", "hi")]


def test_no_key_returns_none_without_network(provider, make_settings: Callable[..., Settings]) -> None:
    client = ChatClient(make_settings(openai_api_key=""))
    assert client.configured is False
    assert client.call_chat(MESSAGES) is None
    assert provider.calls == []


def test_success_returns_trimmed_first_choice(provider, make_settings: Callable[..., Settings]) -> None:
    provider.reply("  Hello test \n")
    client = ChatClient(make_settings(openai_api_key="sk-test", openai_model="gpt-test", request_timeout=12.5))
    out = client.call_chat(MESSAGES, GenerationOptions(max_output_tokens=300))
    assert out == "Hello test"

    call = provider.calls[0]
    assert call["url"] == "https://api.openai.com/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["timeout"] == 12.5
    assert call["json"] == {
        "model": "gpt-test",
        "messages": [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ],
        "max_completion_tokens": 300,
    }


def test_temperature_only_sent_when_set(provider, make_settings: Callable[..., Settings]) -> None:
    client = ChatClient(make_settings(openai_api_key="sk-test"))
    client.call_chat(MESSAGES, GenerationOptions(max_output_tokens=120, temperature=0.8))
    assert provider.calls[0]["json"]["temperature"] == 0.8


def test_missing_content_yields_empty_string(provider, make_settings: Callable[..., Settings]) -> None:
    provider.reply(None)
    client = ChatClient(make_settings(openai_api_key="sk-test"))
    assert client.call_chat(MESSAGES) == ""


def test_non_success_raises_provider_error(provider, make_settings: Callable[..., Settings]) -> None:
    provider.fail(503, "upstream overloaded")
    client = ChatClient(make_settings(openai_api_key="sk-test"))
    with pytest.raises(ProviderError) as info:
        client.call_chat(MESSAGES)
    assert info.value.status_code == 503
    assert info.value.body == "upstream overloaded"
    assert len(provider.calls) == 1


def test_empty_messages_rejected(make_settings: Callable[..., Settings]) -> None:
    client = ChatClient(make_settings(openai_api_key="sk-test"))
    with pytest.raises(ValueError):
        client.call_chat([])
