"""Redirect-following fetcher with per-hop SSRF classification.

fetch_with_redirects() performs the outbound GET for a ProxyRequest and follows
3xx responses itself instead of letting the transport do it:

  for each hop (explicit loop, hop counter carried on ProxyRequest):
    1. hops >= MAX_REDIRECTS          → ProxyError(TOO_MANY_REDIRECTS, 400)
    2. resolve_host + classify        → blocked: ProxyError(PRIVATE_ADDRESS_BLOCKED, 403)
    3. GET with follow_redirects=False
    4. 301..308 + Location            → Redirected(next_url) → next hop
    5. non-2xx                        → ProxyError(UPSTREAM_FAILURE, upstream status)
    6. otherwise                      → Content(body, content_type)

Step 2 runs identically for the original target and for every redirect target,
so a chain cannot escape classification by bouncing through an allowed host.
No outbound request is ever issued before its destination has been classified.

Nothing is retried. Malformed URLs and transport exceptions (httpx.HTTPError)
propagate to the caller; the proxy handler turns them into PROXY_FAILURE.
"""

from __future__ import annotations

import dataclasses
from typing import Union

import httpx

from safeproxy.config import FetchConfig
from safeproxy.constants import (
    DEFAULT_CONTENT_TYPE,
    MAX_REDIRECTS,
    REDIRECT_STATUS_MAX,
    REDIRECT_STATUS_MIN,
)
from safeproxy.guard.classifier import classify_address
from safeproxy.guard.resolver import resolve_host
from safeproxy.models.outcome import Content, ProxyError, ProxyOutcome, ProxyRequest, Redirected
from safeproxy.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


class InvalidTargetURL(ValueError):
    """Raised when a target URL has no host or a scheme other than http/https."""


# ─── httpx.AsyncClient factory ────────────────────────────────────────────────


def create_http_client(fetch_config: FetchConfig | None = None) -> httpx.AsyncClient:
    """Create the httpx.AsyncClient used for ONE proxied request's redirect chain.

    A fresh client per request keeps the cookie jar and connection pool out of
    reach of other callers. Redirect following is disabled at the transport
    level so every 3xx is observed and classified by fetch_with_redirects().

    Args:
        fetch_config: Timeout and User-Agent settings (defaults when None).

    Returns:
        Configured httpx.AsyncClient; the caller owns closing it.
    """
    fetch_config = fetch_config or FetchConfig()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(fetch_config.timeout_s),
        follow_redirects=False,
        headers={"User-Agent": fetch_config.user_agent},
    )


# ─── Single hop ───────────────────────────────────────────────────────────────


def _parse_target(target_url: str) -> httpx.URL:
    url = httpx.URL(target_url)
    if url.scheme not in ALLOWED_SCHEMES or not url.host:
        raise InvalidTargetURL(f"Unsupported proxy target: {target_url!r}")
    return url


async def _fetch_hop(client: httpx.AsyncClient, request: ProxyRequest) -> ProxyOutcome:
    """Classify and fetch one hop. Returns Redirected for a followable 3xx."""
    url = _parse_target(request.target_url)

    address = await resolve_host(url.host)
    verdict = classify_address(address)
    if verdict.blocked:
        logger.warning(
            "address_blocked",
            host=url.host,
            address=address,
            reason=verdict.reason.value if verdict.reason else None,
            hop=request.hops,
        )
        return ProxyError.private_address_blocked()

    response = await client.get(url, follow_redirects=False)
    status = response.status_code

    location = response.headers.get("location")
    if REDIRECT_STATUS_MIN <= status <= REDIRECT_STATUS_MAX and location:
        return Redirected(next_url=str(url.join(location)))

    if not response.is_success:
        logger.info(
            "upstream_failure",
            host=url.host,
            status_code=status,
            hop=request.hops,
        )
        return ProxyError.upstream_failure(status, response.reason_phrase)

    content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
    return Content(body=response.content, content_type=content_type)


# ─── Redirect loop ────────────────────────────────────────────────────────────


async def fetch_with_redirects(
    client: httpx.AsyncClient,
    request: ProxyRequest,
) -> Union[Content, ProxyError]:
    """Fetch ``request.target_url``, following redirects up to MAX_REDIRECTS hops.

    Args:
        client:  httpx.AsyncClient with follow_redirects disabled.
        request: Starting request; ``hops`` is normally 0.

    Returns:
        Content or ProxyError — never Redirected.

    Raises:
        InvalidTargetURL, httpx.InvalidURL: Malformed target or redirect URL.
        httpx.HTTPError: Transport-level failure on any hop.
    """
    current = request
    while True:
        if current.hops >= MAX_REDIRECTS:
            logger.warning(
                "too_many_redirects",
                target_url=current.target_url,
                hops=current.hops,
                limit=MAX_REDIRECTS,
            )
            return ProxyError.too_many_redirects()

        outcome = await _fetch_hop(client, current)
        if not isinstance(outcome, Redirected):
            return outcome

        logger.info(
            "redirect_followed",
            from_url=current.target_url,
            to_url=outcome.next_url,
            hop=current.hops + 1,
        )
        current = dataclasses.replace(
            current, target_url=outcome.next_url, hops=current.hops + 1
        )
