"""Client for an OpenAI-compatible chat-completions endpoint.

Returns ``None`` instead of calling out when no API key is configured so that
callers can switch to their mock generators.
"""
from __future__ import annotations
import logging
from typing import Any, Sequence

import httpx

from tweetjuice.common.config import Settings
from tweetjuice.common.schema import ChatMessage, GenerationOptions

LOGGER = logging.getLogger("tweetjuice.serve.chat")

class ProviderError(RuntimeError):
    """The provider answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Provider error {status_code}: {body}")
        self.status_code = status_code
        self.body = body

def _first_choice_text(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(content, str):
        return ""
    return content.strip()

class ChatClient:
    """Thin synchronous wrapper around ``POST /chat/completions``."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def configured(self) -> bool:
        return self.settings.live

    def build_payload(self, messages: Sequence[ChatMessage], options: GenerationOptions) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.settings.openai_model,
            "messages": [m.as_dict() for m in messages],
            "max_completion_tokens": options.max_output_tokens,
        }
        if options.temperature is not None:
            payload["temperature"] = options.temperature
        return payload

    def call_chat(self, messages: Sequence[ChatMessage], options: GenerationOptions | None = None) -> str | None:
        """
        Send one chat-completion request.

        Args:
            messages: Non-empty ordered conversation.
            options: Token budget and optional temperature.

        Returns:
            The first choice's text, stripped (possibly empty), or ``None`` when
            no API key is configured.

        Raises:
            ProviderError: The provider returned a non-2xx status.
            httpx.HTTPError: Transport failure or timeout.
        """
        if not self.configured:
            return None
        if not messages:
            raise ValueError("messages must not be empty")
        options = options or GenerationOptions()

        url = f"{self.settings.openai_base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.settings.openai_api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(messages, options)

        with httpx.Client(timeout=self.settings.request_timeout) as client:
            r = client.post(url, headers=headers, json=payload)
            if r.status_code < 200 or r.status_code >= 300:
                try:
                    body = r.text
                except Exception:
                    body = ""
                LOGGER.error(
                    "Provider request failed: status=%s model=%s max_completion_tokens=%s temperature=%s",
                    r.status_code,
                    payload["model"],
                    payload["max_completion_tokens"],
                    payload.get("temperature"),
                )
                raise ProviderError(r.status_code, body)
            data = r.json()

        return _first_choice_text(data)
