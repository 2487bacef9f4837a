"""
WaBot - Source Package
======================

A WhatsApp group-management bot driven through a gateway sidecar, plus a
standalone Paystack payment relay.

Package Structure:
- bot.py: WaBot orchestrator and process lifecycle
- commands/: Chat commands, passive listeners and the command router
- core/: Configuration, logging, errors, health server and the state store
- transport/: Transport interface and the gateway adapter
- services/: Session supervisor, media fetcher, content APIs, reminders
- utils/: JID helpers, durations, calculator, stickers, error handler
- payments/: FastAPI Paystack relay

Version: v1.0.0
"""

__version__ = "1.0.0"
