from __future__ import annotations

from pathlib import Path

import pytest

from tweetjuice.common.config import (
    DEFAULT_MODEL,
    DEFAULT_PUBLIC_DIR,
    PACKAGE_DIR,
    load_generation_options,
    load_settings,
)
from tweetjuice.common.schema import GenerationOptions


def test_defaults_without_env() -> None:
    s = load_settings({})
    assert s.port == 3000
    assert s.openai_model == DEFAULT_MODEL
    assert s.live is False
    assert s.rate_limit_max == 30
    assert s.rate_limit_window == 60.0
    assert s.options_for("rewrite") == GenerationOptions(max_output_tokens=300)
    assert s.options_for("punchline").max_output_tokens == 120
    assert s.options_for("unknown") == GenerationOptions()


def test_env_overrides(tmp_path: Path) -> None:
    cfg = tmp_path / "gen.yaml"
    cfg.write_text("punchline:\n  max_output_tokens: 60\n  temperature: 0.8\n", encoding="utf-8")
    s = load_settings({
        "PORT": "8080",
        "OPENAI_API_KEY": " sk-live ",
        "OPENAI_MODEL": "gpt-test",
        "OPENAI_BASE_URL": "http://localhost:8001/v1/",
        "TRUST_PROXY": "false",
        "GENERATION_CONFIG": str(cfg),
    })
    assert s.port == 8080
    assert s.live is True
    assert s.openai_api_key == "sk-live"
    assert s.openai_base_url == "http://localhost:8001/v1"
    assert s.trust_proxy is False
    assert s.options_for("punchline") == GenerationOptions(max_output_tokens=60, temperature=0.8)


def test_bad_boolean_rejected() -> None:
    with pytest.raises(ValueError):
        load_settings({"TRUST_PROXY": "maybe"})


def test_missing_generation_file_is_empty(tmp_path: Path) -> None:
    assert load_generation_options(tmp_path / "absent.yaml") == {}


def test_public_dir_is_anchored_to_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    s = load_settings({})
    assert s.public_dir == DEFAULT_PUBLIC_DIR
    assert s.public_dir.is_absolute()
    assert s.public_dir.parent == PACKAGE_DIR
    assert load_settings({"PUBLIC_DIR": "/srv/site"}).public_dir == Path("/srv/site")
