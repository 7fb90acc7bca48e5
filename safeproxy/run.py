"""Programmatic uvicorn entry point for SafeProxy.

Reads host and port from the loaded config (127.0.0.1:8787 by default) and starts
uvicorn with hardened defaults:

  --limit-concurrency 100  Max 100 concurrent connections; HTTP 503 when exceeded
  --backlog 50             OS connection queue depth; limits SYN flood exposure
  --timeout-keep-alive 5   Reduces Slow Loris attack window

Usage:
    python -m safeproxy.run    # reads .safeproxy/config.yaml
    safeproxy                  # via pyproject.toml [project.scripts]
"""

from __future__ import annotations

import os

import uvicorn

from safeproxy.config import load_config

UVICORN_LIMIT_CONCURRENCY: int = 100

UVICORN_BACKLOG: int = 50

UVICORN_TIMEOUT_KEEP_ALIVE: int = 5


def main() -> None:
    """Start the SafeProxy server with hardened uvicorn defaults.

    Raises:
        SystemExit: Propagated from load_config() on config parse errors.
    """
    config = load_config()
    debug = os.getenv("DEBUG", "false").lower() == "true"

    uvicorn.run(
        "safeproxy.main:app",
        host=config.proxy.host,
        port=config.proxy.port,
        reload=debug,
        limit_concurrency=UVICORN_LIMIT_CONCURRENCY,
        backlog=UVICORN_BACKLOG,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
    )


if __name__ == "__main__":
    main()
