"""SafeProxy — SSRF-guarded HTTP forwarding proxy for browser clients."""

__version__ = "1.0.0"
