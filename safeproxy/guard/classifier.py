"""Address classification for the SSRF guard.

classify_address() decides whether a resolved address lies in a blocked range.
The decision is pure and deterministic: no state, no I/O.

Blocked IPv4 ranges are evaluated on the first two octets ``(a, b)``:

  a == 10                  10.0.0.0/8       RFC 1918
  a == 127                 127.0.0.0/8      loopback
  a == 0                   0.0.0.0/8        "this network"
  a == 172, 16 <= b <= 31  172.16.0.0/12    RFC 1918
  a == 192, b == 168       192.168.0.0/16   RFC 1918
  a == 169, b == 254       169.254.0.0/16   link-local (cloud metadata lives here)
  a >= 224                 224.0.0.0 and up multicast / reserved

IPv6: only the loopback literal ``::1`` is blocked. Unique-local (fc00::/7),
link-local (fe80::/10) and IPv4-mapped forms are NOT classified. This is a known
gap, kept for behavioural parity.

Anything that is not a dotted-quad IPv4 literal or ``::1`` is allowed. That
includes a raw hostname handed over by resolve_host() after a failed DNS lookup.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BlockReason(str, Enum):
    """Why an address was blocked."""

    PRIVATE_10 = "private_10"
    LOOPBACK = "loopback"
    THIS_NETWORK = "this_network"
    PRIVATE_172 = "private_172"
    PRIVATE_192 = "private_192"
    LINK_LOCAL = "link_local"
    MULTICAST_RESERVED = "multicast_reserved"
    IPV6_LOOPBACK = "ipv6_loopback"


@dataclass(frozen=True)
class ClassificationResult:
    """Allowed/blocked decision for one address. ``reason`` is set only when blocked."""

    allowed: bool
    reason: Optional[BlockReason] = None

    @property
    def blocked(self) -> bool:
        return not self.allowed


ALLOWED = ClassificationResult(allowed=True)

IPV6_LOOPBACK_LITERAL: str = "::1"


def _blocked(reason: BlockReason) -> ClassificationResult:
    return ClassificationResult(allowed=False, reason=reason)


def _ipv4_block_reason(a: int, b: int) -> Optional[BlockReason]:
    if a == 10:
        return BlockReason.PRIVATE_10
    if a == 127:
        return BlockReason.LOOPBACK
    if a == 0:
        return BlockReason.THIS_NETWORK
    if a == 172 and 16 <= b <= 31:
        return BlockReason.PRIVATE_172
    if a == 192 and b == 168:
        return BlockReason.PRIVATE_192
    if a == 169 and b == 254:
        return BlockReason.LINK_LOCAL
    if a >= 224:
        return BlockReason.MULTICAST_RESERVED
    return None


def classify_address(address: str) -> ClassificationResult:
    """Classify a resolved address as allowed or blocked.

    Args:
        address: Output of resolve_host() — an IPv4/IPv6 literal, or the raw
                 hostname when DNS resolution failed.

    Returns:
        ClassificationResult; ``reason`` identifies the matched range when blocked.
    """
    if address == IPV6_LOOPBACK_LITERAL:
        return _blocked(BlockReason.IPV6_LOOPBACK)

    try:
        ipv4 = ipaddress.IPv4Address(address)
    except ValueError:
        return ALLOWED

    a, b = ipv4.packed[0], ipv4.packed[1]
    reason = _ipv4_block_reason(a, b)
    if reason is None:
        return ALLOWED
    return _blocked(reason)
