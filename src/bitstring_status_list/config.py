"""Environment-based configuration.

Every setting has a code default that an environment variable can override:

- BSL_LOG_LEVEL: logging level name (WARNING)
- BSL_HTTP_TIMEOUT: HTTP timeout in seconds for remote sources (30.0)
- BSL_VERIFY_SSL: verify TLS certificates (true)
- BSL_DEFAULT_ISSUER: issuer of newly created lists (did:example:issuer)
- BSL_MAX_EVENTS: event log capacity of a StatusRegistry (200)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_ISSUER = "did:example:issuer"
DEFAULT_MAX_EVENTS = 200

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    log_level: str = DEFAULT_LOG_LEVEL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    verify_ssl: bool = True
    default_issuer: str = DEFAULT_ISSUER
    max_events: int = DEFAULT_MAX_EVENTS


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _get_log_level(name: str, default: str) -> str:
    level = (os.getenv(name) or default).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{name} must be a logging level name, got {level!r}")
    return level


def load_settings() -> Settings:
    """Read settings from the environment.

    Raises:
        ValueError: If a variable is set to an invalid value.
    """
    return Settings(
        log_level=_get_log_level("BSL_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        http_timeout=_get_float("BSL_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        verify_ssl=_get_bool("BSL_VERIFY_SSL", True),
        default_issuer=os.getenv("BSL_DEFAULT_ISSUER") or DEFAULT_ISSUER,
        max_events=_get_int("BSL_MAX_EVENTS", DEFAULT_MAX_EVENTS),
    )
