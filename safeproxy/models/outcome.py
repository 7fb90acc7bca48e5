"""Request and outcome value types for the proxy pipeline.

  ProxyRequest — target URL + server-maintained hop counter (never caller-supplied)
  ProxyOutcome — one of:
      Content     relayable upstream bytes + content type
      Redirected  next hop URL (internal to the fetcher; never reaches the handler)
      ProxyError  classified failure with HTTP status and user-facing message

All values are immutable and request-scoped; nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ErrorKind(str, Enum):
    """Error taxonomy surfaced to callers as ``{"error": message}``."""

    MISSING_PARAMETER = "missing_parameter"
    INVALID_BODY = "invalid_body"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    PRIVATE_ADDRESS_BLOCKED = "private_address_blocked"
    UPSTREAM_FAILURE = "upstream_failure"
    PROXY_FAILURE = "proxy_failure"


# User-facing messages. UPSTREAM_FAILURE is built per response from the status text.
MSG_URL_PARAM_REQUIRED = "URL parameter is required"
MSG_URL_BODY_REQUIRED = "URL is required in request body"
MSG_INVALID_BODY = "Invalid request body"
MSG_TOO_MANY_REDIRECTS = "Too many redirects"
MSG_PRIVATE_ADDRESS_BLOCKED = "Access to private/internal addresses not allowed"
MSG_PROXY_FAILURE = "Failed to proxy request"


@dataclass(frozen=True)
class ProxyRequest:
    target_url: str
    hops: int = 0


@dataclass(frozen=True)
class Content:
    body: bytes
    content_type: str


@dataclass(frozen=True)
class Redirected:
    next_url: str


@dataclass(frozen=True)
class ProxyError:
    kind: ErrorKind
    http_status: int
    message: str

    # ─── Factories for the fixed-message kinds ────────────────────────────────

    @classmethod
    def missing_parameter(cls, message: str) -> "ProxyError":
        return cls(ErrorKind.MISSING_PARAMETER, 400, message)

    @classmethod
    def invalid_body(cls) -> "ProxyError":
        return cls(ErrorKind.INVALID_BODY, 400, MSG_INVALID_BODY)

    @classmethod
    def too_many_redirects(cls) -> "ProxyError":
        return cls(ErrorKind.TOO_MANY_REDIRECTS, 400, MSG_TOO_MANY_REDIRECTS)

    @classmethod
    def private_address_blocked(cls) -> "ProxyError":
        return cls(ErrorKind.PRIVATE_ADDRESS_BLOCKED, 403, MSG_PRIVATE_ADDRESS_BLOCKED)

    @classmethod
    def upstream_failure(cls, status_code: int, status_text: str) -> "ProxyError":
        return cls(ErrorKind.UPSTREAM_FAILURE, status_code, f"Failed to fetch: {status_text}")

    @classmethod
    def proxy_failure(cls) -> "ProxyError":
        return cls(ErrorKind.PROXY_FAILURE, 500, MSG_PROXY_FAILURE)


ProxyOutcome = Union[Content, Redirected, ProxyError]
