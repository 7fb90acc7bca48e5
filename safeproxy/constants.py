"""Shared constants for SafeProxy.

Redirect bounds, fetch defaults, and the fixed CORS header sets live here.
No magic numbers in other modules — import from here.
"""

# ─── Redirect Following ──────────────────────────────────────────────────────

# Hop bound for a single proxied request. Hops 0..MAX_REDIRECTS-1 may issue an
# outbound request; reaching MAX_REDIRECTS terminates the chain with HTTP 400.
# A chain therefore never issues more than MAX_REDIRECTS upstream requests.
MAX_REDIRECTS: int = 5

# Upstream statuses treated as redirects when a Location header is present.
REDIRECT_STATUS_MIN: int = 301
REDIRECT_STATUS_MAX: int = 308

# ─── Fetch Defaults ──────────────────────────────────────────────────────────

# Content-Type relayed when the upstream omits the header.
DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

# Transport timeout for each outbound hop (seconds). Overridable via fetch.timeout_s.
DEFAULT_FETCH_TIMEOUT_S: float = 30.0

DEFAULT_USER_AGENT: str = "safeproxy/1.0"

# ─── HTTP Surface ────────────────────────────────────────────────────────────

PROXY_ROUTE: str = "/api/proxy"

# Attached to every successful (Content) proxy response.
CONTENT_CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Returned unconditionally by the OPTIONS preflight responder.
PREFLIGHT_CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
