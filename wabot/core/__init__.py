"""
WaBot - Core Package
====================

Configuration, logging, error types, the health server and the
persisted state store.

DESIGN:
    get_config() and logger are process-wide singletons. The state store
    is not: it is owned by WaBot and passed to whoever needs it.
"""

# =============================================================================
# Core Imports
# =============================================================================

from .config import Config, ConfigValidationError, get_config, load_config
from .errors import (
    CalculationError,
    ContentError,
    ContentNotConfigured,
    PaymentGatewayError,
    StateStoreError,
    TransportClosed,
    TransportError,
    WaBotError,
)
from .logger import logger, LOG_TZ

__all__ = [
    "Config",
    "ConfigValidationError",
    "get_config",
    "load_config",
    "WaBotError",
    "StateStoreError",
    "TransportError",
    "TransportClosed",
    "ContentError",
    "ContentNotConfigured",
    "PaymentGatewayError",
    "CalculationError",
    "logger",
    "LOG_TZ",
]
