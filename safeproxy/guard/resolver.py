"""Hostname resolution for the SSRF guard.

resolve_host() turns a user-supplied hostname into exactly one address that is
then handed to classify_address().

Rules:
  - ``localhost``                 → ``127.0.0.1`` (no DNS lookup)
  - IPv4 literal / ``::1``         → returned unchanged (no DNS lookup)
  - anything else                 → one DNS lookup via the event loop's getaddrinfo;
                                    first result wins
  - DNS lookup fails              → the raw hostname is returned as the "address"

The DNS-failure fallback is a known leniency: an unresolvable name is not
auto-blocked, it simply classifies as allowed and will almost certainly fail the
subsequent fetch. The fetch itself re-resolves the name in the transport, so this
check does not pin the connection to the classified address.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket

from safeproxy.guard.classifier import IPV6_LOOPBACK_LITERAL
from safeproxy.utils.logger import get_logger

logger = get_logger(__name__)

LOCALHOST_NAME: str = "localhost"
LOCALHOST_ADDRESS: str = "127.0.0.1"


def _is_ipv4_literal(hostname: str) -> bool:
    try:
        ipaddress.IPv4Address(hostname)
    except ValueError:
        return False
    return True


async def _dns_lookup(hostname: str) -> str:
    """Resolve ``hostname`` and return the first address reported by getaddrinfo.

    Raises:
        OSError: (``socket.gaierror``) when the name cannot be resolved.
    """
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    if not infos:
        raise socket.gaierror(socket.EAI_NONAME, f"No addresses for {hostname}")
    # sockaddr is (host, port) for IPv4 and (host, port, flow, scope) for IPv6
    return str(infos[0][4][0])


async def resolve_host(hostname: str) -> str:
    """Return the single address used to classify ``hostname``.

    Args:
        hostname: Host component of the target URL (brackets around IPv6 allowed).

    Returns:
        An IP literal, or the bracket-stripped host itself when the DNS lookup failed.
    """
    host = hostname.strip("[]")

    if host.lower() == LOCALHOST_NAME:
        return LOCALHOST_ADDRESS

    if host == IPV6_LOOPBACK_LITERAL or _is_ipv4_literal(host):
        return host

    try:
        return await _dns_lookup(host)
    except OSError as exc:
        logger.warning(
            "dns_lookup_failed",
            hostname=host,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return host
