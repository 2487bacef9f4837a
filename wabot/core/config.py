"""
WaBot - Configuration Module
============================

Centralized configuration management with environment variable validation.

DESIGN:
    This module provides a single source of truth for process configuration,
    loaded from environment variables at startup (main.py loads .env first).
    Validation happens once at load time, not on every access.

    Runtime-mutable settings (command prefix, admin numbers) live in the
    persisted state document; the values here only seed them.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Set

from wabot.core.errors import ConfigValidationError


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Bot configuration loaded from environment variables.

    Attributes:
        gateway_url: Base URL of the WhatsApp gateway sidecar.
        gateway_token: Optional bearer token for the gateway.
        admin_numbers: Seed list of bot admin phone numbers.
        prefix: Default command prefix.
        state_file: Path of the persisted JSON state document.
        media_dir: Directory where fetched media is written.
        warn_limit: Warning count that triggers automatic removal.
    """

    # -------------------------------------------------------------------------
    # Required: Gateway
    # -------------------------------------------------------------------------

    gateway_url: str

    # -------------------------------------------------------------------------
    # Optional: Gateway
    # -------------------------------------------------------------------------

    gateway_token: Optional[str] = None
    request_timeout: int = 60
    reconnect_base_delay: float = 2.0
    reconnect_max_delay: float = 60.0

    # -------------------------------------------------------------------------
    # Optional: Bot
    # -------------------------------------------------------------------------

    bot_name: str = "WaBot"
    bot_version: str = "1.0.0"
    prefix: str = "."
    admin_numbers: Set[str] = field(default_factory=set)
    warn_limit: int = 3

    # -------------------------------------------------------------------------
    # Optional: Storage
    # -------------------------------------------------------------------------

    state_file: Path = Path("data/bot_state.json")
    media_dir: Path = Path("data/media")

    # -------------------------------------------------------------------------
    # Optional: Content APIs
    # -------------------------------------------------------------------------

    openweather_api_key: Optional[str] = None
    newsapi_key: Optional[str] = None
    unsplash_access_key: Optional[str] = None
    content_timeout: int = 10

    # -------------------------------------------------------------------------
    # Optional: Health / Alerts
    # -------------------------------------------------------------------------

    health_port: int = 3000
    error_webhook_url: Optional[str] = None


# =============================================================================
# Environment Readers
# =============================================================================

def _warn(message: str) -> None:
    # importing logger creates the log folders; only do it when warning
    from wabot.core.logger import logger
    logger.warning(message)


def _env(*names: str) -> Optional[str]:
    """First non-empty value among ``names``."""
    for name in names:
        raw = os.getenv(name, "").strip()
        if raw:
            return raw
    return None


def _env_int(name: str, default: int, low: int, high: int, fallback: Optional[str] = None) -> int:
    """Integer env var clamped to [low, high]; garbage gives ``default``."""
    raw = _env(name, fallback) if fallback else _env(name)
    if raw is None:
        return default
    try:
        number = int(raw)
    except ValueError:
        _warn(f"{name}={raw!r} is not an integer, keeping {default}")
        return default

    clamped = min(max(number, low), high)
    if clamped != number:
        _warn(f"{name}={number} outside {low}..{high}, using {clamped}")
    return clamped


def _env_seconds(name: str, default: float) -> float:
    """Positive float env var (a delay in seconds)."""
    raw = _env(name)
    if raw is None:
        return default
    try:
        seconds = float(raw)
    except ValueError:
        seconds = 0.0
    if seconds <= 0:
        _warn(f"{name}={raw!r} is not a positive number, keeping {default}")
        return default
    return seconds


def _env_numbers(name: str) -> Set[str]:
    """
    Comma-separated phone numbers reduced to their digits.

    "+233 20 123 4567, 15551234" -> {"233201234567", "15551234"}
    """
    numbers = set()
    for chunk in (_env(name) or "").split(","):
        digits = "".join(filter(str.isdigit, chunk))
        if digits:
            numbers.add(digits)
    return numbers


def _env_url(name: str) -> Optional[str]:
    """http(s)/ws(s) URL without its trailing slash; anything else is None."""
    raw = _env(name)
    if raw is None:
        return None
    if not raw.startswith(("https://", "http://", "wss://", "ws://")):
        _warn(f"{name} is not an http(s) or ws(s) URL, ignoring it")
        return None
    return raw.rstrip("/")


# =============================================================================
# Loading
# =============================================================================

def load_config() -> Config:
    """
    Build a Config from the process environment.

    Raises:
        ConfigValidationError: WA_GATEWAY_URL is missing or not a URL.
    """
    if _env("WA_GATEWAY_URL") is None:
        raise ConfigValidationError("Missing required environment variables: WA_GATEWAY_URL")
    gateway_url = _env_url("WA_GATEWAY_URL")
    if gateway_url is None:
        raise ConfigValidationError(f"Invalid URL for WA_GATEWAY_URL: {os.getenv('WA_GATEWAY_URL')}")

    return Config(
        gateway_url=gateway_url,
        gateway_token=_env("WA_GATEWAY_TOKEN"),
        request_timeout=_env_int("WA_REQUEST_TIMEOUT", 60, 5, 600),
        reconnect_base_delay=_env_seconds("RECONNECT_BASE_DELAY", 2.0),
        reconnect_max_delay=_env_seconds("RECONNECT_MAX_DELAY", 60.0),
        bot_name=_env("BOT_NAME") or "WaBot",
        prefix=_env("BOT_PREFIX") or ".",
        admin_numbers=_env_numbers("BOT_ADMIN_NUMBERS"),
        warn_limit=_env_int("WARN_LIMIT", 3, 1, 20),
        state_file=Path(_env("STATE_FILE") or "data/bot_state.json"),
        media_dir=Path(_env("MEDIA_DIR") or "data/media"),
        openweather_api_key=_env("OPENWEATHER_API_KEY"),
        newsapi_key=_env("NEWSAPI_KEY"),
        unsplash_access_key=_env("UNSPLASH_ACCESS_KEY"),
        content_timeout=_env_int("CONTENT_TIMEOUT", 10, 1, 120),
        health_port=_env_int("HEALTH_PORT", 3000, 1, 65535, fallback="PORT"),
        error_webhook_url=_env_url("ERROR_WEBHOOK_URL"),
    )


# =============================================================================
# Process-wide Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Load the config on first use and reuse it afterwards."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


__all__ = [
    "Config",
    "ConfigValidationError",
    "load_config",
    "get_config",
]
