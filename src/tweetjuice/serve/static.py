"""Serving of the pre-built front-end bundle."""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any

from fastapi.staticfiles import StaticFiles
from starlette.responses import Response
from starlette.types import Scope

LOGGER = logging.getLogger("tweetjuice.serve.static")

PLACEHOLDER_HTML = (
    '<!doctype html><meta charset="utf-8"><title>TweetJuice</title>'
    "<h1>TweetJuice</h1><p>Place your index.html in /public.</p>"
)

def ensure_public_dir(path: str | Path) -> Path:
    """
    Create the asset directory and a placeholder ``index.html`` if missing.

    Args:
        path: Asset directory.

    Returns:
        The directory as a ``Path``.
    """
    public = Path(path)
    public.mkdir(parents=True, exist_ok=True)
    index = public / "index.html"
    if not index.exists():
        index.write_text(PLACEHOLDER_HTML, encoding="utf-8")
        LOGGER.info("Wrote placeholder %s", index)
    return public

class CachedStaticFiles(StaticFiles):
    """StaticFiles that never caches HTML and caches other assets for an hour."""

    def __init__(self, *args: Any, max_age: int = 3600, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.max_age = max_age

    def file_response(
        self,
        full_path: str | os.PathLike[str],
        stat_result: os.stat_result,
        scope: Scope,
        status_code: int = 200,
    ) -> Response:
        response = super().file_response(full_path, stat_result, scope, status_code)
        if str(full_path).endswith(".html"):
            response.headers["Cache-Control"] = "no-store"
        else:
            response.headers["Cache-Control"] = f"public, max-age={self.max_age}"
        return response
