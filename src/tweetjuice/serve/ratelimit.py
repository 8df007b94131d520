"""In-memory per-client rate limiting for the AI-backed routes."""
from __future__ import annotations
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

LOGGER = logging.getLogger("tweetjuice.serve.ratelimit")

TOO_MANY_REQUESTS = "Too many requests, please try again later."

@dataclass(frozen=True)
class RateLimitStatus:
    """Outcome of counting one request against a key."""
    limit: int
    remaining: int
    reset_after: float
    allowed: bool

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(max(0, math.ceil(self.reset_after))),
        }

class FixedWindowLimiter:
    """
    Count requests per key in windows of ``window`` seconds.

    Each key holds ``[count, window_start]``; the counter restarts once the
    window has elapsed.
    """

    def __init__(self, limit: int = 30, window: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window <= 0:
            raise ValueError("window must be > 0")
        self.limit = limit
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: dict[str, list[float]] = {}
        self._last_prune = clock()

    def _prune(self, now: float) -> None:
        if now - self._last_prune < self.window:
            return
        expired = [k for k, (_, start) in self._hits.items() if now - start >= self.window]
        for k in expired:
            del self._hits[k]
        self._last_prune = now

    def hit(self, key: str) -> RateLimitStatus:
        """Record one request for ``key`` and report whether it is allowed."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            entry = self._hits.get(key)
            if entry is None or now - entry[1] >= self.window:
                entry = [0, now]
                self._hits[key] = entry
            entry[0] += 1
            count, start = int(entry[0]), entry[1]
        return RateLimitStatus(
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_after=start + self.window - now,
            allowed=count <= self.limit,
        )

def client_ip(request: Request, trust_proxy: bool = True) -> str:
    """Resolve the caller's address, trusting one proxy hop when enabled."""
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        hops = [h.strip() for h in forwarded.split(",") if h.strip()]
        if hops:
            return hops[-1]
    if request.client is not None:
        return request.client.host
    return "unknown"

class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply a :class:`FixedWindowLimiter` to POST requests on selected paths only."""

    def __init__(
        self,
        app: ASGIApp,
        limiter: FixedWindowLimiter,
        paths: Iterable[str],
        trust_proxy: bool = True,
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.paths = frozenset(p.rstrip("/") for p in paths)
        self.trust_proxy = trust_proxy

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path.rstrip("/")
        if path not in self.paths or request.method != "POST":
            return await call_next(request)

        ip = client_ip(request, self.trust_proxy)
        status = self.limiter.hit(ip)
        if not status.allowed:
            LOGGER.warning("Rate limit exceeded: ip=%s path=%s", ip, path)
            headers = status.headers()
            headers["Retry-After"] = headers["RateLimit-Reset"]
            return JSONResponse({"error": TOO_MANY_REQUESTS}, status_code=429, headers=headers)

        response = await call_next(request)
        response.headers.update(status.headers())
        return response
