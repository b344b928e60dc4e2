"""FastAPI application brokering Twilio Video tokens and media metadata."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from .core.config import ConfigurationError, Settings, get_settings
from .core.logging_setup import configure_logging
from .routers import video
from .services.errors import VideoServiceError

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API; credentials are validated when the server starts."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            settings.require_credentials()
        except ConfigurationError as exc:
            logger.error("Refusing to start: %s", exc)
            raise
        logger.info("Video sample API ready (env=%s)", settings.app_env)
        yield

    app = FastAPI(title="Video Sample API", version="0.1.0", lifespan=lifespan)
    app.dependency_overrides[get_settings] = lambda: settings

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(VideoServiceError)
    async def video_service_error(_: Request, exc: VideoServiceError) -> PlainTextResponse:
        return PlainTextResponse(exc.message, status_code=403)

    @app.exception_handler(ConfigurationError)
    async def configuration_error(_: Request, exc: ConfigurationError) -> PlainTextResponse:
        logger.error("%s", exc)
        return PlainTextResponse(str(exc), status_code=500)

    @app.get("/api/health", tags=["meta"])
    async def health() -> dict[str, str]:
        """Simple liveness probe."""

        return {"status": "ok"}

    @app.head("/api/health", tags=["meta"])
    async def health_head() -> Response:
        """Allow HEAD for uptime monitors that only need the status code."""

        return Response(status_code=200)

    @app.get("/robots.txt", response_class=PlainTextResponse, include_in_schema=False)
    async def robots() -> PlainTextResponse:
        """Serve a minimal robots.txt to avoid 404 noise."""

        return PlainTextResponse("User-agent: *\nDisallow:")

    app.include_router(video.router, tags=["video"])
    return app


app = create_app()
