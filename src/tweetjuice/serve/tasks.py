"""Post-generation tasks behind the AI routes.

Each task knows how to validate its request, build the live prompt, produce a
mock result, and shape the final value. :class:`TaskRunner` picks the live or
mock path depending on whether the chat client has a credential.
"""
from __future__ import annotations
import json
import logging
import random
import re
from typing import Any, Optional

from pydantic import BaseModel

from tweetjuice.common.config import Settings
from tweetjuice.common.schema import ChatMessage, ComposeIn, PunchlineIn, RewriteIn
from tweetjuice.common.text import clamp, lowercase_hook_version
from tweetjuice.serve.chat_client import ChatClient

LOGGER = logging.getLogger("tweetjuice.serve.tasks")

REWRITE_INPUT_MAX = 560
REWRITE_MODES = ("hook", "rephrase", "custom")
DEFAULT_PUNCHLINE = "save this for later"

PUNCHLINE_BANK: dict[str, list[str]] = {
    "witty": [
        "because boring posts don’t spread",
        "hot take you’ll actually use",
        "proof inside — receipts included",
        "read this before you ship",
    ],
    "direct": [
        "save this and fix it today",
        "steal this, execute, win",
        "copy this and go faster",
        "no fluff, just the play",
    ],
    "friendly": [
        "here’s the shortcut we missed",
        "learned this the hard way",
        "sharing so you don’t struggle",
        "bookmark for your next launch",
    ],
}

_FENCE = re.compile(r"^```[\w-]*\s*(.*?)\s*```$", re.DOTALL)

class InputValidationError(ValueError):
    """A required string field is missing, empty or of the wrong type."""

    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is required")
        self.field = field

def decode_field(content: str, field: str) -> str:
    """
    Pull ``field`` out of a model reply that should be a JSON object.

    Args:
        content: Raw reply text, optionally wrapped in a Markdown code fence.
        field: Name of the expected key.

    Returns:
        The field value as a string ("" when the object lacks it), or the whole
        raw text when the reply is not a JSON object.
    """
    raw = content.strip()
    m = _FENCE.match(raw)
    candidate = m.group(1) if m else raw
    try:
        parsed = json.loads(candidate)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        value = parsed.get(field)
        return "" if value is None else str(value)
    return raw

def _casing_rule(lowercase: bool) -> str:
    return "Respond entirely in lowercase." if lowercase else "Use natural sentence case."

class PostTask:
    """Base class for a route's live prompt builder and mock generator."""

    name = ""
    field = ""
    required = ""

    def validate(self, body: BaseModel) -> str:
        value = getattr(body, self.required, None)
        if not isinstance(value, str) or not value:
            raise InputValidationError(self.required)
        return value

    def mock(self, body: Any) -> str:
        raise NotImplementedError

    def messages(self, body: Any) -> list[ChatMessage]:
        raise NotImplementedError

    def finish(self, value: str) -> str:
        return clamp(value)

    def fallback(self, body: Any) -> str:
        return clamp(getattr(body, self.required))

class RewriteTask(PostTask):
    name = "rewrite"
    field = "after"
    required = "text"

    @staticmethod
    def mode(body: RewriteIn) -> str:
        return body.mode if body.mode in REWRITE_MODES else "rephrase"

    @staticmethod
    def source(body: RewriteIn) -> str:
        return clamp(body.text, REWRITE_INPUT_MAX)

    def mock(self, body: RewriteIn) -> str:
        text = self.source(body)
        mode = self.mode(body)
        if mode == "hook":
            after = lowercase_hook_version(text) if body.lowercase else f"Hot take: {text}"
        elif mode == "custom":
            after = f"{body.customNote}: {text}" if body.customNote else text
        else:
            after = f"we tightened this up: {text}"
        if body.lowercase:
            after = after.lower()
        return clamp(after)

    def messages(self, body: RewriteIn) -> list[ChatMessage]:
        mode = self.mode(body)
        rules = [
            "You are a writing assistant for short social posts (X/Twitter).",
            "Output only the tweet text. No preamble, no explanations.",
            "Hard limit 280 characters. Target 220–260 when possible.",
            "Avoid emojis unless present or explicitly requested.",
            _casing_rule(body.lowercase),
        ]
        if mode == "hook":
            instruction = (
                "Add a short lowercase hook at the start that draws the reader in, then the tweet."
                if body.lowercase
                else "Add a short hook at the start that draws the reader in, then the tweet."
            )
        elif mode == "rephrase":
            instruction = "Rewrite to improve clarity, punch, and flow; preserve original intent."
        else:
            instruction = f"Follow this note: {body.customNote or ''}"
        user = "\n".join([
            f"Original: {self.source(body)}",
            f"Mode: {mode}",
            f"Lowercase: {'true' if body.lowercase else 'false'}",
            instruction,
            "Return JSON only: { after: string }",
        ])
        return [
            ChatMessage("system", " \n".join(rules)),
            ChatMessage("user", user),
        ]

    def fallback(self, body: RewriteIn) -> str:
        return clamp(self.source(body))

class PunchlineTask(PostTask):
    name = "punchline"
    field = "punchline"
    required = "text"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def mock(self, body: PunchlineIn) -> str:
        picks = PUNCHLINE_BANK.get(body.vibe or "", PUNCHLINE_BANK["witty"])
        return self.rng.choice(picks)

    def messages(self, body: PunchlineIn) -> list[ChatMessage]:
        system = (
            "You craft sharp, clean closers and hooks for X posts. Keep it 4–12 words. "
            "Avoid hashtags unless present in input."
        )
        user = "\n".join([
            f"Text: {body.text}",
            f"Vibe: {body.vibe or 'witty'}",
            "Return JSON: { punchline: string }",
        ])
        return [ChatMessage("system", system), ChatMessage("user", user)]

    def fallback(self, body: PunchlineIn) -> str:
        return DEFAULT_PUNCHLINE

class ComposeTask(PostTask):
    name = "compose"
    field = "after"
    required = "topic"

    def mock(self, body: ComposeIn) -> str:
        after = f"quick take: {body.topic} — here's what matters most"
        if body.lowercase:
            after = after.lower()
        return clamp(after)

    def messages(self, body: ComposeIn) -> list[ChatMessage]:
        system = " \n".join([
            "You write short social posts (X/Twitter) on request.",
            "Output only the tweet text. No preamble, no explanations.",
            "Hard limit 280 characters; target 220–260.",
            _casing_rule(body.lowercase),
        ])
        user = "\n".join([
            f"Topic: {body.topic}",
            "Return JSON only: { after: string }",
        ])
        return [ChatMessage("system", system), ChatMessage("user", user)]

class TaskRunner:
    """Dispatch a task to its mock generator or to the provider."""

    def __init__(self, client: ChatClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    def _mocked(self, task: PostTask, body: Any) -> dict[str, Any]:
        return {task.field: task.finish(task.mock(body)), "mock": True}

    def run(self, task: PostTask, body: Any) -> dict[str, Any]:
        """
        Validate ``body`` and produce the route's JSON payload.

        Raises:
            InputValidationError: The required field is missing or not a string.
            ProviderError: The provider answered with a non-2xx status.
        """
        task.validate(body)
        if not self.client.configured:
            return self._mocked(task, body)

        content = self.client.call_chat(task.messages(body), self.settings.options_for(task.name))
        if content is None:
            return self._mocked(task, body)

        value = task.finish(decode_field(content, task.field)) if content else ""
        if not value:
            LOGGER.info("Empty %s reply from provider; using fallback", task.name)
            value = task.fallback(body)
        return {task.field: value}
