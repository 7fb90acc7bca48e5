"""Config loading for SafeProxy.

Reads `.safeproxy/config.yaml` (or `~/.safeproxy/config.yaml`).
Raises SystemExit on parse errors or missing `version` field.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (if provided — for testing or explicit override)
  2. SAFEPROXY_CONFIG environment variable (if set)
  3. `.safeproxy/config.yaml` (working directory — for development)
  4. `~/.safeproxy/config.yaml` (home directory — for production deployments)

Environment variable overrides:
  SAFEPROXY_PORT — overrides proxy.port (takes precedence over config file value)
  SAFEPROXY_CONFIG — sets an explicit config file path to try first

The redirect hop bound is deliberately NOT configurable; see constants.MAX_REDIRECTS.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Optional

import yaml

from safeproxy.constants import DEFAULT_FETCH_TIMEOUT_S, DEFAULT_USER_AGENT
from safeproxy.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# Default config search paths (SAFEPROXY_CONFIG env var prepended at runtime)
DEFAULT_CONFIG_PATHS = [
    ".safeproxy/config.yaml",
    os.path.expanduser("~/.safeproxy/config.yaml"),
]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class ProxyConfig:
    """Proxy binding configuration."""

    host: str = "127.0.0.1"
    port: int = 8787


@dataclass
class FetchConfig:
    """Outbound fetch configuration.

    timeout_s:  Transport timeout applied to every hop (connect/read/write/pool).
    user_agent: User-Agent header sent upstream.
    """

    timeout_s: float = DEFAULT_FETCH_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class Config:
    """Root configuration object populated from .safeproxy/config.yaml.

    All fields have safe defaults — SafeProxy can start without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Args:
            raw:  Parsed YAML dict (must already be validated for version field).
            path: Path to the config file (stored in Config.path).

        Returns:
            Config with all fields populated from raw + defaults for missing fields.

        Raises:
            SystemExit(1): On a non-numeric or non-positive fetch.timeout_s.
        """
        # ── Proxy ─────────────────────────────────────────────────────────────
        proxy_raw = raw.get("proxy") or {}
        proxy = ProxyConfig(
            host=proxy_raw.get("host", "127.0.0.1"),
            port=proxy_raw.get("port", 8787),
        )

        # ── Fetch ─────────────────────────────────────────────────────────────
        fetch_raw = raw.get("fetch") or {}
        timeout_s = fetch_raw.get("timeout_s", DEFAULT_FETCH_TIMEOUT_S)
        if isinstance(timeout_s, bool) or not isinstance(timeout_s, (int, float)) or timeout_s <= 0:
            msg = (
                f"CONFIG ERROR: Invalid fetch.timeout_s: {timeout_s!r}. "
                "Must be a positive number of seconds."
            )
            print(msg, file=sys.stderr)
            raise SystemExit(1)
        fetch = FetchConfig(
            timeout_s=float(timeout_s),
            user_agent=fetch_raw.get("user_agent", DEFAULT_USER_AGENT),
        )

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            proxy=proxy,
            fetch=fetch,
            path=path,
        )


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate SafeProxy configuration.

    Search order:
      1. ``config_path`` argument (if provided)
      2. ``SAFEPROXY_CONFIG`` environment variable (if set)
      3. ``.safeproxy/config.yaml``
      4. ``~/.safeproxy/config.yaml``

    If no file is found at any of these paths, returns default Config (not an error).
    If a file is found but invalid, writes error to stderr and raises SystemExit(1).

    ``SAFEPROXY_PORT`` is applied as an override to ``config.proxy.port`` regardless
    of whether a config file was found.

    Raises:
        SystemExit(1): On YAML parse error, missing ``version`` field, unsupported
                       version, invalid ``fetch.timeout_s``, or invalid ``SAFEPROXY_PORT``.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("SAFEPROXY_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    # ── No config file found ─────────────────────────────────────────────────
    if found_path is None:
        logger.info("No config file found — using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    # ── Parse config file ─────────────────────────────────────────────────────
    logger.info("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        msg = (
            f"CONFIG ERROR: Failed to parse {found_path}: {exc}\n"
            "SafeProxy refuses to start with an invalid config. "
            "Check the YAML syntax and try again."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)
    except OSError as exc:
        msg = f"CONFIG ERROR: Could not read {found_path}: {exc}"
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    if not isinstance(raw, dict):
        if raw is None:
            msg = (
                f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        else:
            msg = (
                f"CONFIG ERROR: {found_path} is not a valid YAML mapping.\n"
                "The config file must be a YAML dictionary at the top level."
            )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    # ── Version validation ────────────────────────────────────────────────────
    version = raw.get("version")
    if version is None:
        msg = (
            f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    if version not in SUPPORTED_VERSIONS:
        msg = (
            f"CONFIG ERROR: Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    config = Config.from_dict(raw, path=found_path)

    _apply_env_overrides(config)

    # ── Security warnings ─────────────────────────────────────────────────────
    if config.proxy.host == "0.0.0.0":
        logger.warning(
            "SECURITY WARNING: SafeProxy is configured to bind on 0.0.0.0 (all interfaces). "
            "Any network client can use it to fetch public URLs. "
            "Recommended: use proxy.host: '127.0.0.1' behind a reverse proxy."
        )

    logger.info(
        "Config loaded",
        path=found_path,
        version=config.version,
        fetch_timeout_s=config.fetch.timeout_s,
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Currently handles:
      SAFEPROXY_PORT — overrides config.proxy.port (integer; SystemExit(1) if invalid)

    Raises:
        SystemExit(1): If SAFEPROXY_PORT is set but not a valid integer.
    """
    env_port = os.environ.get("SAFEPROXY_PORT")
    if env_port is not None:
        try:
            config.proxy.port = int(env_port)
        except ValueError:
            msg = (
                f"CONFIG ERROR: SAFEPROXY_PORT environment variable is not a valid "
                f"integer: '{env_port}'"
            )
            print(msg, file=sys.stderr)
            raise SystemExit(1)
