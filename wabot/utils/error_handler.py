"""
WaBot - Error Handler
=====================

Categorised error reporting with recovery hints for top-level failures.

Features:
- Error categorisation (transport, content, storage, payment)
- Recovery suggestions in the log line
- Critical error snapshots written to logs/errors/
"""

import json
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Tuple, Type

import aiohttp

from wabot.core.errors import (
    ConfigValidationError,
    ContentError,
    PaymentGatewayError,
    StateStoreError,
    TransportError,
)
from wabot.core.logger import logger, LOGS_DIR


class ErrorContext:
    """Captures and formats error context."""

    @staticmethod
    def get_full_context(e: BaseException, location: str, **kwargs: Any) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now().isoformat(),
            "location": location,
            "error_type": type(e).__name__,
            "error_message": str(e),
            "traceback": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
            "python_version": sys.version,
            "additional_context": kwargs,
        }


class ErrorHandler:
    """Error handling with context and recovery hints."""

    ERROR_CATEGORIES: List[Tuple[str, Tuple[Type[BaseException], ...]]] = [
        ("config", (ConfigValidationError,)),
        ("transport", (TransportError,)),
        ("storage", (StateStoreError, OSError)),
        ("content", (ContentError,)),
        ("payment", (PaymentGatewayError,)),
        ("network", (aiohttp.ClientError, ConnectionError, TimeoutError)),
    ]

    RECOVERY_SUGGESTIONS: Dict[str, str] = {
        "config": "Check the .env file and required variables",
        "transport": "Check that the WhatsApp gateway is running and reachable",
        "storage": "Check disk space and permissions on the state file",
        "content": "Third-party API issue - check API keys and quota",
        "payment": "Check PAYSTACK_SECRET_KEY and Paystack availability",
        "network": "Network connection issue - will retry on reconnect",
    }

    @classmethod
    def categorize_error(cls, e: BaseException) -> str:
        for category, error_types in cls.ERROR_CATEGORIES:
            if isinstance(e, error_types):
                return category
        return "general"

    @classmethod
    def get_recovery_suggestion(cls, category: str) -> str:
        return cls.RECOVERY_SUGGESTIONS.get(category, "Unexpected error - check logs for details")

    @classmethod
    def handle(cls, e: BaseException, location: str, critical: bool = False, **context: Any) -> None:
        """
        Log an error with category, recovery hint and context.

        Args:
            e: The exception.
            location: Where the error occurred.
            critical: Whether this error stops the process.
            **context: Extra key/value context for the log.
        """
        category = cls.categorize_error(e)
        suggestion = cls.get_recovery_suggestion(category)
        full_context = ErrorContext.get_full_context(e, location, **context)

        details = [
            ("Location", location),
            ("Category", category.upper()),
            ("Type", full_context["error_type"]),
            ("Error", str(e)[:200]),
            ("Recovery", suggestion),
        ]
        details.extend((str(k), str(v)[:100]) for k, v in context.items())

        if critical:
            logger.error("💥 Critical Error", details)
            logger.info(f"Traceback:\n{full_context['traceback']}")
            cls._store_critical_error(full_context)
        else:
            logger.warning("Error Handled", details)

    @staticmethod
    def _store_critical_error(context: Dict[str, Any]) -> None:
        error_dir = LOGS_DIR / "errors"
        try:
            error_dir.mkdir(exist_ok=True, parents=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            error_file = Path(error_dir) / f"error_{timestamp}.json"
            with open(error_file, "w", encoding="utf-8") as f:
                json.dump(context, f, indent=2, default=str)
            logger.info(f"Critical error saved to {error_file}")
        except OSError as save_error:
            logger.warning(f"Failed to save error details: {save_error}")


__all__ = ["ErrorHandler", "ErrorContext"]
