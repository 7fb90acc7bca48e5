"""HTTP response builders for the proxy endpoint.

Three response shapes leave the proxy handler:

  build_content_response():
      HTTP 200 — upstream bytes relayed unchanged. ``Content-Type`` is copied from
      the outcome verbatim (no charset is appended), plus the fixed CORS headers
      ``Access-Control-Allow-{Origin,Methods,Headers}``.
      The upstream's exact 2xx code is NOT mirrored; the handler always answers 200.

  build_error_response():
      ``{"error": <message>}`` with the ProxyError's status (400, 403, 500, or the
      mirrored upstream status for UPSTREAM_FAILURE). No CORS headers.

  build_preflight_response():
      HTTP 200, empty body, preflight CORS headers (methods include OPTIONS).
"""

from __future__ import annotations

from fastapi import Response
from fastapi.responses import JSONResponse

from safeproxy.constants import CONTENT_CORS_HEADERS, PREFLIGHT_CORS_HEADERS
from safeproxy.models.outcome import Content, ProxyError


def build_content_response(outcome: Content) -> Response:
    """Build the HTTP 200 relay response for a Content outcome."""
    headers = {"Content-Type": outcome.content_type, **CONTENT_CORS_HEADERS}
    # media_type stays None so Starlette does not rewrite the upstream Content-Type
    return Response(content=outcome.body, status_code=200, headers=headers)


def build_error_response(error: ProxyError) -> JSONResponse:
    """Build the JSON error response for a ProxyError outcome."""
    return JSONResponse(status_code=error.http_status, content={"error": error.message})


def build_preflight_response() -> Response:
    """Build the unconditional HTTP 200 preflight response."""
    return Response(status_code=200, headers=dict(PREFLIGHT_CORS_HEADERS))
