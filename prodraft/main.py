"""FastAPI application for the ProDraft content-polishing API.

Endpoints:
  POST /api/generate  -> { "text": "...", "format": "email" } -> { "output": [...] }
  POST /api/export    -> { "content": "...", "format": "txt"|"pdf" } -> file download
  GET  /api/formats   -> available output formats
  GET  /health        -> provider and rate limiter status
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from prodraft.config import CORS_ORIGINS, LLM_PROVIDER
from prodraft.errors import ApiError
from prodraft.llm_factory import provider_configured, provider_info
from prodraft.logging_config import setup_logging
from prodraft.prompt_builder import format_catalogue
from prodraft.rate_limit import FixedWindowRateLimiter, limiter
from prodraft.routers import export, generate

log = logging.getLogger(__name__)


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=exc.headers)


def create_app(
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
    llm_provider: Optional[str] = None,
) -> FastAPI:
    """Build the application.

    ``rate_limiter`` is the store shared by every ``/api/generate`` call for
    the lifetime of this app; a fresh one is built from configuration when
    omitted. ``llm_provider`` overrides ``LLM_PROVIDER``.
    """
    provider = provider_info(llm_provider or LLM_PROVIDER).name

    app = FastAPI(title="ProDraft API")
    app.state.rate_limiter = rate_limiter if rate_limiter is not None else FixedWindowRateLimiter()
    app.state.llm_provider = provider
    app.state.limiter = limiter

    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        log.info("Incoming request: %s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            log.exception("Error handling request %s %s", request.method, request.url.path)
            raise
        log.info("Response %s for %s %s", response.status_code, request.method, request.url.path)
        return response

    @app.get("/")
    async def root():
        return {
            "service": "prodraft api",
            "endpoints": [
                {"path": "/api/generate", "method": "POST", "desc": "polish text into several variations"},
                {"path": "/api/export", "method": "POST", "desc": "download content as .txt or .pdf"},
                {"path": "/api/formats", "method": "GET", "desc": "list output formats"},
                {"path": "/health", "method": "GET", "desc": "provider and rate limiter status"},
            ],
        }

    @app.get("/health")
    async def health(request: Request):
        info = provider_info(request.app.state.llm_provider)
        store: FixedWindowRateLimiter = request.app.state.rate_limiter
        return {
            "status": "healthy",
            "checks": {
                "provider": {
                    "name": info.name,
                    "status": "ok" if provider_configured(info.name) else "not_configured",
                },
                "rate_limiter": {
                    "limit": store.limit,
                    "window_seconds": store.window_seconds,
                    "tracked_clients": len(store),
                },
            },
        }

    @app.get("/api/formats")
    async def formats():
        return {"formats": format_catalogue()}

    app.include_router(generate.router)
    app.include_router(export.router)
    return app


setup_logging()
app = create_app()
