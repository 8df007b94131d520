from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

import tweetjuice.serve.chat_client as chat_mod
from tweetjuice.common.config import Settings


class _FakeResponse:
    def __init__(self, status_code: int = 200, json_data: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._json = json_data
        self.text = text

    def json(self) -> Any:
        return self._json


class FakeProvider:
    """Stands in for ``httpx.Client`` and records every POST."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.status_code = 200
        self.content: Any = '{"after": "Hello test"}'
        self.error_text = ""
        self.raises: BaseException | None = None

    def reply(self, content: Any) -> None:
        self.status_code = 200
        self.content = content

    def fail(self, status_code: int, text: str) -> None:
        self.status_code = status_code
        self.error_text = text

    def raise_on_post(self, exc: BaseException) -> None:
        self.raises = exc

    def client_factory(self) -> Callable[..., "_FakeClient"]:
        provider = self

        class _FakeClient:
            def __init__(self, timeout: float | int | None = None) -> None:  # signature-compatible
                self.timeout = timeout

            def __enter__(self) -> "_FakeClient":
                return self

            def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
                return None

            def post(self, url: str, headers: dict[str, str] | None = None, json: dict[str, Any] | None = None) -> _FakeResponse:  # noqa: A002
                provider.calls.append({"url": url, "headers": headers, "json": json, "timeout": self.timeout})
                if provider.raises is not None:
                    raise provider.raises
                if provider.status_code >= 400:
                    return _FakeResponse(provider.status_code, None, provider.error_text)
                data = {
                    "choices": [
                        {"message": {"role": "assistant", "content": provider.content}, "index": 0}
                    ],
                }
                return _FakeResponse(200, data)

        return _FakeClient


@pytest.fixture
def provider(monkeypatch: pytest.MonkeyPatch) -> FakeProvider:
    fake = FakeProvider()
    monkeypatch.setattr(chat_mod.httpx, "Client", fake.client_factory())
    return fake


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        overrides.setdefault("public_dir", tmp_path / "public")
        return Settings(**overrides)

    return _make
