"""String clamping and formatting helpers for post text."""
from __future__ import annotations
import re
from typing import Any

TWEET_MAX = 280
ELLIPSIS = "…"
HOOK = "you’re missing this — "

_LEADING_DASHES = re.compile(r"^[\s\-–—]+")

def normalize_ws(text: Any) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    if text is None:
        return ""
    return " ".join(str(text).split())

def clamp(text: Any = "", max_len: int = TWEET_MAX) -> str:
    """
    Normalize whitespace and bound the length of ``text``.

    Args:
        text: Any value; ``None`` is treated as empty.
        max_len: Maximum length of the result, ellipsis included.

    Returns:
        The collapsed text, or its first ``max_len - 1`` characters followed by
        a single ellipsis when it is too long.
    """
    if max_len < 1:
        return ""
    t = normalize_ws(text)
    if len(t) > max_len:
        return t[: max_len - 1] + ELLIPSIS
    return t

def lowercase_hook_version(text: Any) -> str:
    """Lowercase ``text``, drop leading dashes and prepend the hook phrase."""
    body = _LEADING_DASHES.sub("", normalize_ws(text).lower())
    return clamp(HOOK + body)
