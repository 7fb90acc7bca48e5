"""SafeProxy models package.

  - outcome.py   — ProxyRequest, ProxyOutcome variants (Content / Redirected / ProxyError), ErrorKind
  - responses.py — HTTP response builders for content, error and preflight responses
"""
