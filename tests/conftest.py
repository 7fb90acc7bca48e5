"""Root test configuration for SafeProxy.

Keeps the suite hermetic:
  - SAFEPROXY_CONFIG / SAFEPROXY_PORT are cleared so a developer's environment
    never leaks into config tests.
  - ``fake_dns`` replaces the resolver's DNS lookup with an in-memory table so no
    test depends on real name servers.
"""

from __future__ import annotations

import socket

import pytest


@pytest.fixture(autouse=True)
def clear_safeproxy_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove SafeProxy environment overrides for every test."""
    monkeypatch.delenv("SAFEPROXY_CONFIG", raising=False)
    monkeypatch.delenv("SAFEPROXY_PORT", raising=False)


class FakeDNS:
    """In-memory replacement for safeproxy.guard.resolver._dns_lookup.

    Names missing from ``records`` fail with socket.gaierror, like an NXDOMAIN.
    Every lookup is recorded in ``lookups``.
    """

    def __init__(self) -> None:
        self.records: dict[str, str] = {}
        self.lookups: list[str] = []

    def add(self, hostname: str, address: str) -> None:
        self.records[hostname] = address

    async def lookup(self, hostname: str) -> str:
        self.lookups.append(hostname)
        try:
            return self.records[hostname]
        except KeyError:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known") from None


@pytest.fixture
def fake_dns(monkeypatch: pytest.MonkeyPatch) -> FakeDNS:
    """Patch DNS resolution with a FakeDNS table (empty: every lookup fails)."""
    dns = FakeDNS()
    monkeypatch.setattr("safeproxy.guard.resolver._dns_lookup", dns.lookup)
    return dns
