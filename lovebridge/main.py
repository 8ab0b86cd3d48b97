from __future__ import annotations

"""FastAPI app entry: speech, translation and admin APIs plus healthz/metrics."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
import structlog

from lovebridge.api.admin import router as admin_router
from lovebridge.api.errors import install_error_handlers
from lovebridge.api.speech import router as speech_router
from lovebridge.api.translate import router as translate_router
from lovebridge.config.settings import Settings, get_settings
from lovebridge.services.logging import configure_logging
from lovebridge.services.state import AppState, build_state


configure_logging(get_settings().log_level)
logger = structlog.get_logger()


def create_app(settings: Settings | None = None, *, state: AppState | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_state = state or build_state(settings)
        app.state.lovebridge = app_state
        if not settings.api_secret:
            logger.warning("api_secret_unset", detail="speech and translation endpoints are open")
        if not settings.admin_secret:
            logger.warning("admin_secret_unset", detail="admin endpoint rejects every request")
        logger.info(
            "startup",
            openai_configured=settings.openai_configured,
            openrouter_configured=bool(settings.openrouter_api_key),
            hf_enabled=settings.hf_enabled,
        )
        try:
            yield
        finally:
            await app_state.aclose()

    app = FastAPI(title="LoveBridge", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)
    app.include_router(speech_router)
    app.include_router(translate_router)
    app.include_router(admin_router)

    @app.middleware("http")
    async def add_trace_id(request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id") or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(trace_id=trace_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
        return response

    @app.get("/healthz", response_class=PlainTextResponse)
    async def healthz() -> str:
        return "ok"

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics_endpoint(request: Request) -> str:
        return request.app.state.lovebridge.metrics.to_prometheus()

    return app


app = create_app()
