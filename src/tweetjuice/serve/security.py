"""Response hardening headers and request body size guard."""
from __future__ import annotations
import logging

from fastapi import HTTPException
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

LOGGER = logging.getLogger("tweetjuice.serve.security")

PAYLOAD_TOO_LARGE = "Payload too large"

# No Content-Security-Policy; the bundled front-end may use inline scripts.
SECURITY_HEADERS: dict[str, str] = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

class PayloadTooLarge(HTTPException):
    """Request body exceeded the configured limit while being read."""

    def __init__(self, limit: int) -> None:
        super().__init__(status_code=413, detail=PAYLOAD_TOO_LARGE)
        self.limit = limit

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp security headers on every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

class BodySizeLimitMiddleware:
    """
    Bound request bodies to ``max_body_bytes``.

    A declared ``Content-Length`` over the limit is rejected up front. Bodies
    without one (chunked uploads) are counted as they are received and raise
    :class:`PayloadTooLarge` once the limit is crossed.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int = 512 * 1024) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    def _declared_too_large(self, scope: Scope) -> bool:
        declared = Headers(scope=scope).get("content-length")
        if not declared:
            return False
        try:
            return int(declared) > self.max_body_bytes
        except ValueError:
            return False

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if self._declared_too_large(scope):
            LOGGER.info("Rejected body over %s bytes on %s", self.max_body_bytes, scope.get("path"))
            response = JSONResponse({"error": PAYLOAD_TOO_LARGE}, status_code=413)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    LOGGER.info("Streamed body over %s bytes on %s", self.max_body_bytes, scope.get("path"))
                    raise PayloadTooLarge(self.max_body_bytes)
            return message

        await self.app(scope, limited_receive, send)
