"""
WaBot - Payment Relay Package
=============================

Standalone HTTP relay between a web frontend and Paystack. Shares only
the logger and error types with the bot.

Structure:
    - config.py: PaymentConfig from environment
    - models.py: request bodies
    - paystack.py: aiohttp Paystack client
    - app.py: FastAPI application factory
    - server.py: uvicorn runner (python -m wabot.payments)
"""

from .app import create_app
from .config import PaymentConfig, get_payment_config, load_payment_config
from .paystack import PaystackClient

__all__ = [
    "create_app",
    "PaymentConfig",
    "get_payment_config",
    "load_payment_config",
    "PaystackClient",
]
