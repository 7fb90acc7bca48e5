"""Proxy endpoint for SafeProxy — GET / POST / OPTIONS on /api/proxy.

  GET  /api/proxy?url=<target>     target from the query string
  POST /api/proxy {"url": target}  target from a JSON body
  OPTIONS /api/proxy               preflight, always 200 (no classification)

GET and POST drive the same pipeline: fetch_with_redirects() from hop 0 with a
fresh httpx.AsyncClient, then map the outcome:

  Content     → 200, raw upstream bytes, upstream Content-Type, CORS headers
  ProxyError  → {"error": message} with the error's status
  exception   → 500 {"error": "Failed to proxy request"}

No exception raised while proxying escapes this module: malformed URLs and
transport faults are logged and downgraded to PROXY_FAILURE.

Two routers are exported so the application factory can gate the proxying
routes on readiness while leaving the preflight responder unconditional.
"""

from __future__ import annotations

from typing import Callable, Optional

import httpx
from fastapi import APIRouter, Request, Response

from safeproxy.constants import PROXY_ROUTE
from safeproxy.models.outcome import (
    MSG_URL_BODY_REQUIRED,
    MSG_URL_PARAM_REQUIRED,
    Content,
    ProxyError,
    ProxyRequest,
)
from safeproxy.models.responses import (
    build_content_response,
    build_error_response,
    build_preflight_response,
)
from safeproxy.proxy.fetcher import create_http_client, fetch_with_redirects
from safeproxy.utils.logger import clear_request_id, get_logger, set_request_id
from safeproxy.utils.ulid import generate_ulid

logger = get_logger(__name__)

# ─── Routers ──────────────────────────────────────────────────────────────────

router = APIRouter(tags=["proxy"])
preflight_router = APIRouter(tags=["proxy"])


# ─── Pipeline ─────────────────────────────────────────────────────────────────


def _client_factory(request: Request) -> Callable[[], httpx.AsyncClient]:
    return getattr(request.app.state, "http_client_factory", create_http_client)


def _reject(error: ProxyError, method: str) -> Response:
    logger.info(
        "proxy_request_rejected",
        method=method,
        kind=error.kind.value,
        status_code=error.http_status,
    )
    return build_error_response(error)


async def _proxy(request: Request, target_url: str) -> Response:
    """Run the fetch pipeline for ``target_url`` and map the outcome to a response."""
    set_request_id(generate_ulid())
    try:
        try:
            async with _client_factory(request)() as client:
                outcome = await fetch_with_redirects(client, ProxyRequest(target_url=target_url))
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "proxy_failed",
                method=request.method,
                target_url=target_url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            outcome = ProxyError.proxy_failure()

        if isinstance(outcome, Content):
            logger.info(
                "request_proxied",
                method=request.method,
                target_url=target_url,
                content_type=outcome.content_type,
                size=len(outcome.body),
            )
            return build_content_response(outcome)

        return build_error_response(outcome)
    finally:
        clear_request_id()


# ─── Routes ───────────────────────────────────────────────────────────────────


@router.get(PROXY_ROUTE)
async def proxy_get(request: Request) -> Response:
    """Proxy the URL given in the ``url`` query parameter."""
    target_url: Optional[str] = request.query_params.get("url")
    if not target_url:
        return _reject(ProxyError.missing_parameter(MSG_URL_PARAM_REQUIRED), "GET")
    return await _proxy(request, target_url)


@router.post(PROXY_ROUTE)
async def proxy_post(request: Request) -> Response:
    """Proxy the URL given as ``url`` in a JSON request body.

    An unparsable body is rejected with 400 before the pipeline runs. A body that
    parses but is not an object, or whose ``url`` is not a non-empty string, is
    treated as missing the URL.
    """
    try:
        payload = await request.json()
    except (ValueError, RecursionError):
        # json.JSONDecodeError and UnicodeDecodeError are both ValueError;
        # deeply nested arrays exhaust the decoder's recursion limit
        return _reject(ProxyError.invalid_body(), "POST")

    target_url = payload.get("url") if isinstance(payload, dict) else None
    if not isinstance(target_url, str) or not target_url:
        return _reject(ProxyError.missing_parameter(MSG_URL_BODY_REQUIRED), "POST")
    return await _proxy(request, target_url)


@preflight_router.options(PROXY_ROUTE)
async def proxy_preflight() -> Response:
    """Answer CORS preflight unconditionally; nothing is proxied."""
    return build_preflight_response()
