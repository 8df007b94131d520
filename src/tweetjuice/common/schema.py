"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, StrictStr, field_validator

@dataclass(frozen=True)
class ChatMessage:
    """One role-tagged turn of a chat conversation."""
    role: Literal["system", "user", "assistant"]
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}

@dataclass(frozen=True)
class GenerationOptions:
    """Generation parameters for a single provider call."""
    max_output_tokens: int = 220
    temperature: Optional[float] = None

# Only the required field is type-checked; optional fields never fail
# validation and fall back to their defaults instead.

class RewriteIn(BaseModel):
    text: Optional[StrictStr] = None
    mode: Optional[str] = None
    lowercase: bool = False
    customNote: Optional[str] = None

    @field_validator("lowercase", mode="before")
    @classmethod
    def coerce_lowercase(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("mode", mode="before")
    @classmethod
    def coerce_mode(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("customNote", mode="before")
    @classmethod
    def coerce_note(cls, value: Any) -> Optional[str]:
        if not value:
            return None
        return value if isinstance(value, str) else str(value)

class PunchlineIn(BaseModel):
    text: Optional[StrictStr] = None
    vibe: Optional[str] = None

    @field_validator("vibe", mode="before")
    @classmethod
    def coerce_vibe(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

class ComposeIn(BaseModel):
    topic: Optional[StrictStr] = None
    lowercase: bool = False

    @field_validator("lowercase", mode="before")
    @classmethod
    def coerce_lowercase(cls, value: Any) -> bool:
        return bool(value)

class PostOut(BaseModel):
    after: str
    mock: Optional[bool] = None

class PunchlineOut(BaseModel):
    punchline: str
    mock: Optional[bool] = None

class HealthOut(BaseModel):
    ok: bool = True
