"""Application entry point and FastAPI app factory."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config.dependencies import Providers, build_providers
from .config.settings import Settings, settings
from .controllers import conversion, transcription
from .middleware import StructuredLoggingMiddleware, TelemetryMiddleware
from .services.errors import GatewayError, normalize_error


def _rotating_handler(path: str, fmt: str, max_bytes: int) -> RotatingFileHandler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _configure_logging(config: Settings) -> None:
    """Stream app logs to stdout and rotate pipeline/transcript logs to files."""

    logging.getLogger().handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(
        _rotating_handler(
            config.log_file,
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            1_000_000,
        )
    )
    root_logger.setLevel(logging.DEBUG if config.debug else logging.INFO)

    middleware_logger = logging.getLogger("mediagate.middleware.structured")
    middleware_logger.handlers.clear()
    middleware_stdout = logging.StreamHandler(sys.stdout)
    middleware_stdout.setFormatter(logging.Formatter("%(message)s"))
    middleware_logger.addHandler(middleware_stdout)
    middleware_logger.setLevel(logging.INFO)
    middleware_logger.propagate = False

    pipeline_logger = logging.getLogger("mediagate.pipelines")
    pipeline_logger.handlers.clear()
    pipeline_logger.addHandler(
        _rotating_handler(
            config.pipeline_log_file,
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            500_000,
        )
    )
    pipeline_logger.setLevel(logging.INFO)

    transcript_logger = logging.getLogger("mediagate.logs.transcript")
    transcript_logger.handlers.clear()
    transcript_logger.addHandler(
        _rotating_handler(
            config.transcript_log_file,
            "%(asctime)s | %(levelname)s | %(message)s",
            500_000,
        )
    )
    transcript_logger.setLevel(logging.INFO)
    transcript_logger.propagate = False

    noisy_loggers = [
        "httpx",
        "httpcore",
        "openai",
        "urllib3",
        "multipart",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def _json_safe(value: Any) -> Any:
    try:
        return jsonable_encoder(value)
    except (TypeError, ValueError):
        return repr(value)


def create_app(
    config: Settings = settings,
    providers: Optional[Providers] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    _configure_logging(config)

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        debug=config.debug,
        description="Video transcription and document conversion gateway",
    )
    app.state.providers = providers or build_providers(config)

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )

    app.include_router(transcription.router)
    app.include_router(conversion.router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""

        return {
            "message": f"Welcome to {config.app_name}",
            "version": config.app_version,
            "status": "operational",
        }

    @app.get("/health", include_in_schema=False)
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""

        state: Providers = app.state.providers
        return {
            "status": "healthy",
            "service": config.app_name,
            "version": config.app_version,
            "transcription_configured": state.transcriber.configured,
            "conversion_configured": state.converter.configured,
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose application metrics for Prometheus scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(GatewayError)
    async def gateway_exception_handler(request: Request, exc: GatewayError):
        normalized = normalize_error(exc)
        payload = normalized.as_payload()
        payload["details"] = _json_safe(payload["details"])
        return JSONResponse(status_code=exc.status_code, content=payload)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request.", "details": _json_safe(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "details": None},
        )

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        await app.state.providers.aclose()

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "mediagate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
