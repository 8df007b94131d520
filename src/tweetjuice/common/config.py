"""Process configuration, built once at startup and passed around explicitly."""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from tweetjuice.common.schema import GenerationOptions

PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_GENERATION_CONFIG = PACKAGE_DIR / "configs" / "generation.yaml"
DEFAULT_PUBLIC_DIR = PACKAGE_DIR / "public"
DEFAULT_MODEL = "gpt-5-nano"
DEFAULT_BASE_URL = "https://api.openai.com/v1"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}

@dataclass(frozen=True)
class Settings:
    """Runtime settings for the server, the provider client and the limiter."""
    port: int = 3000
    host: str = "0.0.0.0"
    openai_api_key: str = ""
    openai_model: str = DEFAULT_MODEL
    openai_base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 30.0
    rate_limit_window: float = 60.0
    rate_limit_max: int = 30
    trust_proxy: bool = True
    public_dir: Path = DEFAULT_PUBLIC_DIR
    max_body_bytes: int = 512 * 1024
    generation_config: Path = DEFAULT_GENERATION_CONFIG
    log_level: str = "INFO"
    generation: dict[str, GenerationOptions] = field(default_factory=lambda: load_generation_options())

    @property
    def live(self) -> bool:
        """True when a provider credential is configured."""
        return bool(self.openai_api_key)

    def options_for(self, task: str) -> GenerationOptions:
        return self.generation.get(task, GenerationOptions())

def _as_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")

def load_generation_options(path: str | Path = DEFAULT_GENERATION_CONFIG) -> dict[str, GenerationOptions]:
    """
    Load per-task generation parameters from a YAML file.

    Args:
        path: YAML file mapping task name to ``max_output_tokens`` / ``temperature``.

    Returns:
        Mapping of task name to options. A missing file yields an empty mapping.
    """
    p = Path(path)
    if not p.exists():
        return {}
    with open(p, "r", encoding="utf-8") as f:
        raw: Any = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p}: expected a mapping of task names")

    out: dict[str, GenerationOptions] = {}
    for task, cfg in raw.items():
        cfg = cfg or {}
        temperature = cfg.get("temperature")
        out[str(task)] = GenerationOptions(
            max_output_tokens=int(cfg.get("max_output_tokens", 220)),
            temperature=None if temperature is None else float(temperature),
        )
    return out

def load_settings(env: Mapping[str, str] | None = None, dotenv: bool = True) -> Settings:
    """
    Build settings from environment variables.

    Args:
        env: Mapping to read from; defaults to ``os.environ``.
        dotenv: Load a ``.env`` file into the process environment first.
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    generation_config = Path(env.get("GENERATION_CONFIG") or DEFAULT_GENERATION_CONFIG)
    return Settings(
        port=int(env.get("PORT") or 3000),
        host=env.get("HOST") or "0.0.0.0",
        openai_api_key=(env.get("OPENAI_API_KEY") or "").strip(),
        openai_model=env.get("OPENAI_MODEL") or DEFAULT_MODEL,
        openai_base_url=(env.get("OPENAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        request_timeout=float(env.get("OPENAI_TIMEOUT") or 30.0),
        rate_limit_window=float(env.get("RATE_LIMIT_WINDOW_SECONDS") or 60.0),
        rate_limit_max=int(env.get("RATE_LIMIT_MAX") or 30),
        trust_proxy=_as_bool("TRUST_PROXY", env.get("TRUST_PROXY", "true")),
        public_dir=Path(env.get("PUBLIC_DIR") or DEFAULT_PUBLIC_DIR),
        max_body_bytes=int(env.get("MAX_BODY_BYTES") or 512 * 1024),
        generation_config=generation_config,
        log_level=env.get("LOG_LEVEL") or "INFO",
        generation=load_generation_options(generation_config),
    )
