"""
WaBot - Payment Relay Configuration
===================================

Settings for the Paystack relay, read from the environment.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from wabot.core.logger import logger


DEFAULT_FRONTEND_URL = "http://localhost:3000"
PAYSTACK_BASE_URL = "https://api.paystack.co"


@dataclass(frozen=True)
class PaymentConfig:
    """Payment relay settings."""

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Paystack
    secret_key: str = ""
    base_url: str = PAYSTACK_BASE_URL
    currency: str = "GHS"
    timeout: int = 30

    # Frontend
    frontend_url: str = DEFAULT_FRONTEND_URL
    cors_origins: Tuple[str, ...] = ("*",)


def _parse_origins(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ("*",)
    origins = tuple(o.strip().rstrip("/") for o in value.split(",") if o.strip())
    return origins or ("*",)


def load_payment_config() -> PaymentConfig:
    """
    Load relay configuration from environment.

    A missing PAYSTACK_SECRET_KEY is only a warning: the relay still starts
    and upstream calls fail with Paystack's own error.
    """
    secret_key = os.getenv("PAYSTACK_SECRET_KEY", "")
    if not secret_key:
        logger.warning("PAYSTACK_SECRET_KEY is not set in environment variables")

    port_raw = os.getenv("PAYMENT_API_PORT") or os.getenv("PORT") or "3000"
    try:
        port = int(port_raw)
    except ValueError:
        logger.warning(f"Config PAYMENT_API_PORT='{port_raw}' invalid, using default 3000")
        port = 3000

    return PaymentConfig(
        host=os.getenv("PAYMENT_API_HOST", "0.0.0.0"),
        port=port,
        secret_key=secret_key,
        base_url=os.getenv("PAYSTACK_BASE_URL", PAYSTACK_BASE_URL).rstrip("/"),
        currency=os.getenv("PAYMENT_CURRENCY", "GHS").upper(),
        frontend_url=os.getenv("PAYMENT_FRONTEND_URL", DEFAULT_FRONTEND_URL).rstrip("/"),
        cors_origins=_parse_origins(os.getenv("PAYMENT_CORS_ORIGINS")),
    )


# Singleton instance
_config: Optional[PaymentConfig] = None


def get_payment_config() -> PaymentConfig:
    """Get the payment configuration singleton."""
    global _config
    if _config is None:
        _config = load_payment_config()
    return _config


__all__ = ["PaymentConfig", "load_payment_config", "get_payment_config"]
