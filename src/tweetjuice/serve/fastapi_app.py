"""FastAPI app for TweetJuice.

Endpoints:
- GET /healthz
- POST /api/rewrite    { "text": "...", "mode"?: "hook|rephrase|custom", "lowercase"?: bool, "customNote"?: "..." }
- POST /api/punchline  { "text": "...", "vibe"?: "witty|direct|friendly" }
- POST /api/compose    { "topic": "...", "lowercase"?: bool }
- GET /*               static front-end bundle
"""
from __future__ import annotations
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tweetjuice.common.config import Settings, load_settings
from tweetjuice.common.logging_setup import setup_logging
from tweetjuice.common.schema import (
    ComposeIn,
    HealthOut,
    PostOut,
    PunchlineIn,
    PunchlineOut,
    RewriteIn,
)
from tweetjuice.serve.chat_client import ChatClient
from tweetjuice.serve.ratelimit import FixedWindowLimiter, RateLimitMiddleware
from tweetjuice.serve.security import (
    PAYLOAD_TOO_LARGE,
    BodySizeLimitMiddleware,
    PayloadTooLarge,
    SecurityHeadersMiddleware,
)
from tweetjuice.serve.static import CachedStaticFiles, ensure_public_dir
from tweetjuice.serve.tasks import (
    ComposeTask,
    InputValidationError,
    PostTask,
    PunchlineTask,
    RewriteTask,
    TaskRunner,
)

LOGGER = logging.getLogger("tweetjuice.serve.app")

GENERIC_ERROR = "Something went wrong"

REWRITE_PATH = "/api/rewrite"
PUNCHLINE_PATH = "/api/punchline"
COMPOSE_PATH = "/api/compose"
AI_PATHS = (REWRITE_PATH, PUNCHLINE_PATH, COMPOSE_PATH)

def _validation_message(required: Optional[str]) -> str:
    """Only the required field is type-checked, so any body error is about it."""
    if required:
        return f"{required} is required"
    return "invalid request body"

def create_app(settings: Settings | None = None, chat_client: ChatClient | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Runtime settings; loaded from the environment when omitted.
        chat_client: Provider client; built from ``settings`` when omitted.
    """
    settings = settings or load_settings()
    client = chat_client or ChatClient(settings)
    runner = TaskRunner(client, settings)
    limiter = FixedWindowLimiter(settings.rate_limit_max, settings.rate_limit_window)

    rewrite_task = RewriteTask()
    punchline_task = PunchlineTask()
    compose_task = ComposeTask()
    required_by_path = {
        REWRITE_PATH: rewrite_task.required,
        PUNCHLINE_PATH: punchline_task.required,
        COMPOSE_PATH: compose_task.required,
    }

    app = FastAPI(title="TweetJuice", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.limiter = limiter
    app.state.runner = runner

    # Added innermost first: security -> body limit -> CORS -> rate limit -> routes.
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        paths=AI_PATHS,
        trust_proxy=settings.trust_proxy,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(SecurityHeadersMiddleware)

    @app.exception_handler(InputValidationError)
    async def _input_error(_request: Request, exc: InputValidationError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(PayloadTooLarge)
    async def _too_large(_request: Request, _exc: PayloadTooLarge) -> JSONResponse:
        return JSONResponse({"error": PAYLOAD_TOO_LARGE}, status_code=413)

    @app.exception_handler(RequestValidationError)
    async def _body_error(request: Request, _exc: RequestValidationError) -> JSONResponse:
        required = required_by_path.get(request.url.path.rstrip("/"))
        return JSONResponse({"error": _validation_message(required)}, status_code=400)

    def _respond(task: PostTask, body: Any) -> Any:
        try:
            return runner.run(task, body)
        except InputValidationError:
            raise
        except Exception:
            LOGGER.exception("%s error", task.name)
            return JSONResponse({"error": GENERIC_ERROR}, status_code=500)

    @app.get("/healthz", response_model=HealthOut)
    def healthz() -> HealthOut:
        return HealthOut(ok=True)

    @app.post(REWRITE_PATH, response_model=PostOut, response_model_exclude_none=True)
    def rewrite(body: Optional[RewriteIn] = None) -> Any:
        return _respond(rewrite_task, body or RewriteIn())

    @app.post(PUNCHLINE_PATH, response_model=PunchlineOut, response_model_exclude_none=True)
    def punchline(body: Optional[PunchlineIn] = None) -> Any:
        return _respond(punchline_task, body or PunchlineIn())

    @app.post(COMPOSE_PATH, response_model=PostOut, response_model_exclude_none=True)
    def compose(body: Optional[ComposeIn] = None) -> Any:
        return _respond(compose_task, body or ComposeIn())

    # Static files last so they never shadow the API.
    public = ensure_public_dir(settings.public_dir)
    app.mount("/", CachedStaticFiles(directory=str(public), html=True), name="static")
    return app

def main() -> None:
    import uvicorn

    settings = load_settings()
    setup_logging(settings.log_level)
    app = create_app(settings)
    LOGGER.info("TweetJuice server listening on http://%s:%s", settings.host, settings.port)
    if settings.live:
        LOGGER.info("OpenAI key detected: AI endpoints live (model=%s).", settings.openai_model)
    else:
        LOGGER.warning("No OPENAI_API_KEY set: endpoints will return mock data.")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None, proxy_headers=False)

if __name__ == "__main__":
    main()
