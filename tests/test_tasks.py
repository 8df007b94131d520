from __future__ import annotations

import random
from typing import Callable

import pytest

from tweetjuice.common.config import Settings
from tweetjuice.common.schema import ComposeIn, PunchlineIn, RewriteIn
from tweetjuice.serve.chat_client import ChatClient
from tweetjuice.serve.tasks import (
    ComposeTask,
    InputValidationError,
    PunchlineTask,
    RewriteTask,
    TaskRunner,
    decode_field,
)


@pytest.mark.parametrize(
    "content,expected",
    [
        ('{"after": "clean"}', "clean"),
        ('{"after": null}', ""),
        ('{"other": 1}', ""),
        ("plain text reply", "plain text reply"),
        ('"just a json string"', '"just a json string"'),
        ("```\n{\"after\": \"fenced\"}\n```", "fenced"),
    ],
)
def test_decode_field(content: str, expected: str) -> None:
    assert decode_field(content, "after") == expected


def test_validate_requires_non_empty_string() -> None:
    with pytest.raises(InputValidationError) as info:
        ComposeTask().validate(ComposeIn())
    assert str(info.value) == "topic is required"


def test_punchline_mock_is_seedable() -> None:
    a = PunchlineTask(random.Random(7)).mock(PunchlineIn(text="x", vibe="friendly"))
    b = PunchlineTask(random.Random(7)).mock(PunchlineIn(text="x", vibe="friendly"))
    assert a == b


def test_rewrite_custom_prompt_carries_note() -> None:
    system, user = RewriteTask().messages(RewriteIn(text="hi", mode="custom", customNote="add a question"))
    assert system.role == "system" and "Use natural sentence case." in system.content
    assert "Follow this note: add a question" in user.content
    assert "Lowercase: false" in user.content


def test_runner_uses_mock_without_key(provider, make_settings: Callable[..., Settings]) -> None:
    settings = make_settings()
    runner = TaskRunner(ChatClient(settings), settings)
    out = runner.run(ComposeTask(), ComposeIn(topic="tea"))
    assert out == {"after": "quick take: tea — here's what matters most", "mock": True}
    assert provider.calls == []


def test_runner_live_path_has_no_mock_flag(provider, make_settings: Callable[..., Settings]) -> None:
    provider.reply('{"punchline": "  bold   move  "}')
    settings = make_settings(openai_api_key="sk-test")
    runner = TaskRunner(ChatClient(settings), settings)
    assert runner.run(PunchlineTask(), PunchlineIn(text="x")) == {"punchline": "bold move"}
