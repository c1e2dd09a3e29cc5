from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog.contextvars import bind_contextvars, reset_contextvars

from video_library.api.routes import router
from video_library.dependencies import (
    close_cached_clients,
    get_database,
    get_piped_client,
    get_settings,
    get_telemetry,
)
from video_library.errors import RateLimitedError, VideoLibraryError
from video_library.logging_config import configure_application_logging

LOGGER = logging.getLogger("video_library.http")


def health_check() -> dict[str, str]:
    return {"status": "ok"}


@asynccontextmanager
async def app_lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_application_logging(settings)
    get_database()
    # Built here so concurrent first requests share one client.
    get_piped_client()
    LOGGER.info(
        "video library started db_path=%s upstream=%s",
        settings.db_path,
        settings.piped_api_base_url,
    )
    try:
        yield
    finally:
        await close_cached_clients()


def _error_response(error: VideoLibraryError) -> JSONResponse:
    headers: dict[str, str] = {}
    if isinstance(error, RateLimitedError):
        headers["Retry-After"] = str(error.retry_after_seconds)
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.message, "code": error.code},
        headers=headers or None,
    )


async def video_library_error_handler(_: Request, exc: Exception) -> Response:
    assert isinstance(exc, VideoLibraryError)
    if exc.status_code >= 500:
        LOGGER.error("request failed code=%s error=%s", exc.code, exc, exc_info=exc.__cause__)
    return _error_response(exc)


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    assert isinstance(exc, RequestValidationError)
    first_error = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first_error.get("loc", ()) if part != "body")
    message = "Invalid request"
    if location:
        message = f"Invalid request: {location} {first_error.get('msg', 'is invalid')}"
    return JSONResponse(status_code=400, content={"error": message, "code": "validation_error"})


async def unhandled_error_handler(_: Request, exc: Exception) -> Response:
    LOGGER.exception("unhandled error type=%s", type(exc).__name__)
    return JSONResponse(status_code=500, content={"error": "Server error", "code": "internal_error"})


def create_app() -> FastAPI:
    app = FastAPI(title="Video Library API", version="0.1.0", lifespan=app_lifespan)

    async def request_context_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        telemetry = get_telemetry()
        incoming_request_id = request.headers.get("X-Request-ID")
        request_id = (
            incoming_request_id.strip()
            if isinstance(incoming_request_id, str) and incoming_request_id.strip()
            else str(uuid4())
        )
        context_tokens = bind_contextvars(
            http_request_id=request_id,
            http_method=request.method,
            http_path=request.url.path,
        )
        try:
            with telemetry.timed(
                "http.request",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
            ) as outcome:
                response = await call_next(request)
                outcome["status_code"] = response.status_code
        finally:
            reset_contextvars(**context_tokens)
        response.headers["X-Request-ID"] = request_id
        return response

    app.middleware("http")(request_context_middleware)
    app.add_exception_handler(VideoLibraryError, video_library_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(router)
    app.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        tags=["system"],
        operation_id="health_check",
    )
    return app


app = create_app()
