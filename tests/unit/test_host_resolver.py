"""Unit tests for resolve_host() — literal shortcuts, DNS lookup, failure fallback."""

from __future__ import annotations

import asyncio
import socket
from typing import Any

import pytest

from safeproxy.guard import resolver
from safeproxy.guard.resolver import resolve_host


class TestShortcutsSkipDns:
    """localhost and IP literals never reach the DNS lookup."""

    @pytest.mark.asyncio
    async def test_localhost_maps_to_ipv4_loopback(self, fake_dns: Any) -> None:
        assert await resolve_host("localhost") == "127.0.0.1"
        assert fake_dns.lookups == []

    @pytest.mark.asyncio
    async def test_localhost_is_case_insensitive(self, fake_dns: Any) -> None:
        assert await resolve_host("LocalHost") == "127.0.0.1"
        assert fake_dns.lookups == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("literal", ["8.8.8.8", "10.0.0.1", "169.254.169.254"])
    async def test_ipv4_literal_unchanged(self, fake_dns: Any, literal: str) -> None:
        assert await resolve_host(literal) == literal
        assert fake_dns.lookups == []

    @pytest.mark.asyncio
    async def test_ipv6_loopback_unchanged(self, fake_dns: Any) -> None:
        assert await resolve_host("::1") == "::1"
        assert fake_dns.lookups == []

    @pytest.mark.asyncio
    async def test_bracketed_ipv6_loopback(self, fake_dns: Any) -> None:
        assert await resolve_host("[::1]") == "::1"
        assert fake_dns.lookups == []


class TestDnsLookup:
    @pytest.mark.asyncio
    async def test_resolved_address_returned(self, fake_dns: Any) -> None:
        fake_dns.add("example.com", "93.184.216.34")
        assert await resolve_host("example.com") == "93.184.216.34"
        assert fake_dns.lookups == ["example.com"]

    @pytest.mark.asyncio
    async def test_hostname_resolving_to_private_address(self, fake_dns: Any) -> None:
        fake_dns.add("intranet.example.com", "10.1.2.3")
        assert await resolve_host("intranet.example.com") == "10.1.2.3"

    @pytest.mark.asyncio
    async def test_lookup_failure_falls_back_to_hostname(self, fake_dns: Any) -> None:
        """NXDOMAIN → the raw hostname is classified instead (single attempt, no retry)."""
        assert await resolve_host("does-not-exist.invalid") == "does-not-exist.invalid"
        assert fake_dns.lookups == ["does-not-exist.invalid"]

    @pytest.mark.asyncio
    async def test_lookup_failure_falls_back_to_stripped_host(self, fake_dns: Any) -> None:
        assert await resolve_host("[fe80::1]") == "fe80::1"
        assert fake_dns.lookups == ["fe80::1"]

    @pytest.mark.asyncio
    async def test_non_ipv4_looking_name_goes_to_dns(self, fake_dns: Any) -> None:
        fake_dns.add("10.0.0", "10.0.0.0")
        assert await resolve_host("10.0.0") == "10.0.0.0"
        assert fake_dns.lookups == ["10.0.0"]


class TestDnsLookupImplementation:
    """_dns_lookup() itself, with the event loop's getaddrinfo stubbed."""

    @pytest.mark.asyncio
    async def test_returns_first_getaddrinfo_result(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_getaddrinfo(host: str, port: Any, **kwargs: Any) -> list[Any]:
            return [
                (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("203.0.113.7", 0)),
                (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("2001:db8::7", 0, 0, 0)),
            ]

        loop = asyncio.get_running_loop()
        monkeypatch.setattr(loop, "getaddrinfo", fake_getaddrinfo)
        assert await resolver._dns_lookup("example.org") == "203.0.113.7"

    @pytest.mark.asyncio
    async def test_gaierror_propagates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def failing_getaddrinfo(host: str, port: Any, **kwargs: Any) -> list[Any]:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        loop = asyncio.get_running_loop()
        monkeypatch.setattr(loop, "getaddrinfo", failing_getaddrinfo)
        with pytest.raises(OSError):
            await resolver._dns_lookup("nowhere.invalid")

    @pytest.mark.asyncio
    async def test_empty_result_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def empty_getaddrinfo(host: str, port: Any, **kwargs: Any) -> list[Any]:
            return []

        loop = asyncio.get_running_loop()
        monkeypatch.setattr(loop, "getaddrinfo", empty_getaddrinfo)
        with pytest.raises(socket.gaierror):
            await resolver._dns_lookup("empty.invalid")
