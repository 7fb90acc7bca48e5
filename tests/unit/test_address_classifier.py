"""Unit tests for classify_address() — blocked IPv4 ranges, IPv6 loopback, passthrough.

Covers:
  - Every blocked IPv4 range, including both edges of 172.16.0.0/12
  - Public addresses adjacent to blocked ranges stay allowed
  - ``::1`` blocked; other IPv6 (documented gap) and hostnames allowed
  - Determinism: same address, same result
"""

from __future__ import annotations

import pytest

from safeproxy.guard.classifier import BlockReason, ClassificationResult, classify_address


class TestBlockedIPv4Ranges:
    """Addresses inside a blocked range return allowed=False with the matching reason."""

    @pytest.mark.parametrize(
        ("address", "reason"),
        [
            ("10.0.0.1", BlockReason.PRIVATE_10),
            ("10.255.255.255", BlockReason.PRIVATE_10),
            ("127.0.0.1", BlockReason.LOOPBACK),
            ("127.8.9.10", BlockReason.LOOPBACK),
            ("0.0.0.0", BlockReason.THIS_NETWORK),
            ("0.1.2.3", BlockReason.THIS_NETWORK),
            ("172.16.0.1", BlockReason.PRIVATE_172),
            ("172.31.255.254", BlockReason.PRIVATE_172),
            ("192.168.1.100", BlockReason.PRIVATE_192),
            ("169.254.169.254", BlockReason.LINK_LOCAL),
            ("224.0.0.1", BlockReason.MULTICAST_RESERVED),
            ("239.255.255.250", BlockReason.MULTICAST_RESERVED),
            ("255.255.255.255", BlockReason.MULTICAST_RESERVED),
        ],
    )
    def test_blocked(self, address: str, reason: BlockReason) -> None:
        result = classify_address(address)
        assert result.allowed is False
        assert result.blocked is True
        assert result.reason == reason

    def test_cloud_metadata_address_blocked(self) -> None:
        """169.254.169.254 (AWS/GCP/Azure metadata) is the canonical SSRF target."""
        assert classify_address("169.254.169.254").blocked


class TestAllowedIPv4:
    """Public addresses — including neighbours of blocked ranges — are allowed."""

    @pytest.mark.parametrize(
        "address",
        [
            "8.8.8.8",
            "1.1.1.1",
            "93.184.216.34",
            "11.0.0.1",
            "126.255.255.255",
            "128.0.0.1",
            "172.15.255.255",
            "172.32.0.0",
            "192.167.1.1",
            "192.169.0.1",
            "169.253.0.1",
            "169.255.0.1",
            "223.255.255.255",
            "100.64.0.1",
        ],
    )
    def test_allowed(self, address: str) -> None:
        result = classify_address(address)
        assert result == ClassificationResult(allowed=True)
        assert result.reason is None


class TestIPv6:
    def test_ipv6_loopback_blocked(self) -> None:
        result = classify_address("::1")
        assert result.blocked
        assert result.reason == BlockReason.IPV6_LOOPBACK

    @pytest.mark.parametrize("address", ["fc00::1", "fe80::1", "2001:4860:4860::8888", "::ffff:127.0.0.1"])
    def test_other_ipv6_not_classified(self, address: str) -> None:
        """Only ::1 is blocked; unique-local / link-local / mapped IPv6 pass (known gap)."""
        assert classify_address(address).allowed


class TestNonLiteralAddresses:
    @pytest.mark.parametrize("address", ["example.com", "internal.corp", "", "10.0.0", "999.1.1.1"])
    def test_non_ip_input_allowed(self, address: str) -> None:
        """Unresolved hostnames and malformed literals are not auto-blocked."""
        assert classify_address(address).allowed


class TestDeterminism:
    def test_same_address_same_result(self) -> None:
        assert classify_address("192.168.0.1") == classify_address("192.168.0.1")
        assert classify_address("8.8.4.4") == classify_address("8.8.4.4")
