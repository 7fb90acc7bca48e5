"""Health endpoint for SafeProxy.

  GET /health — 503 before ``app.state.ready`` is set by the lifespan, 200 after.

Polled by container / cloud health probes.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from safeproxy.config import Config
from safeproxy.constants import MAX_REDIRECTS

router = APIRouter(tags=["health"])

STARTING_DETAIL: dict[str, str] = {
    "status": "starting",
    "message": "SafeProxy is starting up.",
}


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Primary health check endpoint.

    Response body (200):
        {
          "status": "ok",
          "proxy": "running",
          "max_redirects": 5,
          "fetch_timeout_s": 30.0
        }

    Response body (503):
        {"error": {"status": "starting", "message": "SafeProxy is starting up."}}
    """
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(status_code=503, detail=STARTING_DETAIL)

    config: Config = request.app.state.config
    return {
        "status": "ok",
        "proxy": "running",
        "max_redirects": MAX_REDIRECTS,
        "fetch_timeout_s": config.fetch.timeout_s,
    }
