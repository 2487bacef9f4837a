"""
WaBot - Payment Relay Server
============================

Runs the relay application with uvicorn.

Standalone (for development):
    uvicorn --factory wabot.payments.app:create_app --reload
"""

from typing import Optional

import uvicorn
from dotenv import load_dotenv

from wabot.payments.app import create_app
from wabot.payments.config import PaymentConfig, get_payment_config


def serve(config: Optional[PaymentConfig] = None) -> None:
    """Blocking uvicorn run of the relay."""
    config = config or get_payment_config()
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level="warning",
        access_log=False,
    )


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    serve()


__all__ = ["serve", "run"]
