"""ULID generation for SafeProxy request correlation.

Every proxied request is tagged with a ULID (26 chars, Crockford Base32,
lexicographically sortable) that is bound into the structlog context so all
log events for one redirect chain can be grepped together.

Uses the `python-ulid` library — do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Returns:
        str: A 26-character ULID string, charset ``[0-9A-HJKMNP-TV-Z]``.
    """
    return str(ULID())
