"""
WaBot - Health Check Server
===========================

HTTP endpoints for uptime monitoring and remote pairing.

DESIGN:
    Runs inside the bot's event loop with aiohttp's AppRunner. /health
    reports session state and basic counts; /pairing returns the latest
    QR string or pairing code so the account can be linked on a headless
    host. Nothing sensitive beyond the pairing payload is exposed.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from aiohttp import web

from wabot.core.logger import logger, LOG_TZ

if TYPE_CHECKING:
    from wabot.bot import WaBot


# =============================================================================
# Health Check Server
# =============================================================================

class HealthCheckServer:
    """
    Small aiohttp server bound to 0.0.0.0.

    Attributes:
        bot: Reference to the main bot instance.
        port: Port number for the HTTP server.
        app: aiohttp Application instance.
        runner: aiohttp AppRunner for lifecycle management.
    """

    def __init__(self, bot: "WaBot", port: int = 3000) -> None:
        self.bot = bot
        self.port = port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None

        self.app.router.add_get("/health", self.health_handler)
        self.app.router.add_get("/", self.health_handler)
        self.app.router.add_get("/pairing", self.pairing_handler)

    # =========================================================================
    # Request Handlers
    # =========================================================================

    async def health_handler(self, request: web.Request) -> web.Response:
        """
        Report liveness.

        "healthy" means the WhatsApp session is open; anything else is
        reported with the raw session state.
        """
        supervisor = self.bot.supervisor
        store = self.bot.store

        status = {
            "status": "healthy" if supervisor.connected else supervisor.state.value,
            "bot": self.bot.config.bot_name,
            "connected": supervisor.connected,
            "session": supervisor.state.value,
            "reconnects": supervisor.reconnects,
            "groups": len(store.document.groups),
            "users": len(store.document.users),
            "uptime_seconds": int(self.bot.uptime_seconds),
            "timestamp": datetime.now(LOG_TZ).isoformat(),
        }

        logger.debug(f"Health check: {status['status']}")
        return web.json_response(status)

    async def pairing_handler(self, request: web.Request) -> web.Response:
        """Current pairing payload, asking the gateway to re-emit it when missing."""
        supervisor = self.bot.supervisor
        if supervisor.connected:
            return web.json_response({"state": supervisor.state.value, "pairing": None})

        payload = supervisor.pairing_payload or await supervisor.request_pairing()
        if not payload:
            return web.json_response(
                {"state": supervisor.state.value, "pairing": None, "message": "No pairing payload yet"},
                status=404,
            )
        return web.json_response({
            "state": supervisor.state.value,
            "kind": supervisor.pairing_kind,
            "pairing": payload,
        })

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def start(self) -> None:
        """Start serving; a bind failure is logged and the bot keeps running."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, "0.0.0.0", self.port)
            await site.start()

            logger.tree("Health Server Started", [
                ("Port", str(self.port)),
                ("Endpoints", "/health, /pairing"),
            ], emoji="🏥")

        except OSError as e:
            logger.error("Health Server Startup Failed", [
                ("Port", str(self.port)),
                ("Error", str(e)[:100]),
            ])

    async def stop(self) -> None:
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Health check server stopped")


__all__ = ["HealthCheckServer"]
