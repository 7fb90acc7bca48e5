"""SafeProxy FastAPI application factory + lifespan lifecycle.

This module implements:
  - create_app() — testable application factory
  - lifespan — @asynccontextmanager startup/shutdown sequence
  - /health router — delegated to safeproxy/health.py
  - /       route  — service discovery root
  - /api/proxy     — delegated to safeproxy/proxy/handler.py
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()                 → app.state.config
  2. per-request client factory    → app.state.http_client_factory
  3. app.state.ready = True

Shutdown: app.state.ready = False.

Uvicorn hardened defaults (see safeproxy/run.py):
  uvicorn safeproxy.main:app \\
    --host 127.0.0.1 \\
    --port 8787 \\
    --limit-concurrency 100 \\
    --backlog 50 \\
    --timeout-keep-alive 5
"""

from __future__ import annotations

import functools
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter

from safeproxy import __version__
from safeproxy.config import Config, load_config
from safeproxy.constants import PROXY_ROUTE
from safeproxy.health import STARTING_DETAIL
from safeproxy.health import router as health_router
from safeproxy.models.outcome import MSG_PROXY_FAILURE
from safeproxy.proxy.fetcher import create_http_client
from safeproxy.proxy.handler import preflight_router
from safeproxy.proxy.handler import router as proxy_router
from safeproxy.utils.logger import configure_logging, get_logger

# ─── Logging Setup ────────────────────────────────────────────────────────────
# Configure logging at module import time (before any other imports that may log).
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)


root_router = APIRouter(tags=["root"])


# ─── Dependencies ─────────────────────────────────────────────────────────────


async def require_ready(request: Request) -> None:
    """FastAPI dependency: raises HTTP 503 if app.state.ready is not True.

    Gates GET/POST on the proxy route. The OPTIONS preflight responder is
    deliberately not gated.
    """
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(status_code=503, detail=STARTING_DETAIL)


# ─── Root Endpoint ────────────────────────────────────────────────────────────


@root_router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint — service identity / discovery."""
    return {
        "service": "SafeProxy",
        "version": __version__,
        "proxy": PROXY_ROUTE,
        "health": "/health",
    }


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup and shutdown sequence."""
    logger.info("SafeProxy starting up...")

    # load_config() raises SystemExit on parse error or missing version field,
    # so the process exits non-zero before ready=True is ever set.
    config: Config = load_config()
    app.state.config = config

    # One httpx.AsyncClient per proxied request; nothing is shared across callers.
    app.state.http_client_factory = functools.partial(create_http_client, config.fetch)
    logger.info(
        "HTTP client factory installed",
        timeout_s=config.fetch.timeout_s,
        user_agent=config.fetch.user_agent,
    )

    app.state.ready = True
    logger.info("SafeProxy ready", host=config.proxy.host, port=config.proxy.port)

    yield

    logger.info("SafeProxy shutting down...")
    app.state.ready = False
    logger.info("SafeProxy shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app() -> FastAPI:
    """Create and configure the SafeProxy FastAPI application.

    Call this function directly in unit tests to get an isolated app instance:
        app = create_app()

    Returns:
        Configured FastAPI application with lifespan, routers, and exception handlers.
    """
    # Swagger UI / ReDoc only when DEBUG=true
    _debug = os.getenv("DEBUG", "false").lower() == "true"

    application = FastAPI(
        title="SafeProxy",
        description="SSRF-guarded HTTP forwarding proxy for browser clients",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if _debug else None,
        redoc_url="/redoc" if _debug else None,
        openapi_url="/openapi.json" if _debug else None,
    )

    # /health returns 503 on any request that arrives before startup completes.
    application.state.ready = False

    # No CORSMiddleware: the proxy route emits its own fixed CORS headers and
    # answers OPTIONS itself. Starlette's preflight handling would pre-empt it.

    application.include_router(root_router)
    application.include_router(health_router)
    application.include_router(preflight_router)
    application.include_router(proxy_router, dependencies=[Depends(require_ready)])

    # Global exception handlers
    @application.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        message = (
            MSG_PROXY_FAILURE
            if request.url.path == PROXY_ROUTE
            else "Internal server error"
        )
        return JSONResponse(status_code=500, content={"error": message})

    return application


# ─── Module-Level App (for uvicorn) ───────────────────────────────────────────

app = create_app()
