"""
WaBot - Main Bot Class
======================

Wires configuration, state, transport, services and the command router
together and owns the process lifecycle.

DESIGN:
    run() loads state, starts the health server and hands control to the
    SessionSupervisor until it returns (logged out), stop() is called
    (restart command or signal), or the task is cancelled. shutdown()
    always runs: final state save, reminders cancelled, content session
    closed, health server stopped, transport closed.
"""

import asyncio
import time
from datetime import datetime
from typing import Optional

from wabot.commands import CommandRouter, Services, build_command_table
from wabot.core.config import Config
from wabot.core.errors import StateStoreError
from wabot.core.health import HealthCheckServer
from wabot.core.logger import logger, LOG_TZ
from wabot.core.state import StateStore
from wabot.services.content import ContentClient
from wabot.services.media import MediaFetcher
from wabot.services.scheduler import ReminderScheduler
from wabot.services.session import SessionSupervisor
from wabot.transport.base import Transport
from wabot.transport.gateway import GatewayTransport
from wabot.utils.duration import format_duration


# =============================================================================
# WaBot Class
# =============================================================================

class WaBot:
    """
    One WhatsApp bot process.

    Args:
        config: Process configuration.
        transport: Chat transport; a GatewayTransport for config.gateway_url
            when omitted.
        content: Content API client; built from config when omitted.

    Attributes:
        restart_requested: True once the restart command asked for a clean exit.
    """

    def __init__(
        self,
        config: Config,
        transport: Optional[Transport] = None,
        content: Optional[ContentClient] = None,
    ) -> None:
        self.config = config
        self.start_time = datetime.now(LOG_TZ)
        self._started = time.monotonic()
        self.restart_requested = False

        self.store = StateStore(
            config.state_file,
            default_prefix=config.prefix,
            admin_numbers=config.admin_numbers,
            warn_limit=config.warn_limit,
        )
        self.transport: Transport = transport or GatewayTransport(
            config.gateway_url,
            token=config.gateway_token,
            request_timeout=config.request_timeout,
        )
        self.content = content or ContentClient(
            timeout=config.content_timeout,
            openweather_api_key=config.openweather_api_key,
            newsapi_key=config.newsapi_key,
            unsplash_access_key=config.unsplash_access_key,
        )
        self.scheduler = ReminderScheduler()
        self.media = MediaFetcher(self.transport, config.media_dir)

        self.services = Services(
            store=self.store,
            transport=self.transport,
            config=config,
            media=self.media,
            content=self.content,
            scheduler=self.scheduler,
            request_restart=self.request_restart,
        )
        build_command_table(self.services)
        self.router = CommandRouter(self.services)

        self.supervisor = SessionSupervisor(
            self.transport,
            on_message=self.router.handle_message,
            on_membership=self.router.handle_membership,
            base_delay=config.reconnect_base_delay,
            max_delay=config.reconnect_max_delay,
        )
        self.health = HealthCheckServer(self, port=config.health_port)
        self._shutdown_done = False
        self._stop_task: Optional[asyncio.Task] = None

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def run(self) -> None:
        """Run until logged out, stopped or cancelled; always shuts down."""
        self.store.load()
        self.config.media_dir.mkdir(parents=True, exist_ok=True)

        logger.tree("WABOT STARTING", [
            ("Name", self.config.bot_name),
            ("Version", self.config.bot_version),
            ("Gateway", self.config.gateway_url),
            ("Prefix", self.store.prefix),
            ("Commands", str(len({id(c) for c in self.services.commands.values()}))),
            ("Groups", str(len(self.store.document.groups))),
        ], emoji="🚀")

        await self.health.start()
        try:
            await self.supervisor.run()
        finally:
            await self.shutdown()

    def request_restart(self) -> None:
        """Ask for a clean exit; the process manager starts a fresh process."""
        self.restart_requested = True
        self.request_stop()

    def request_stop(self) -> None:
        """Schedule a supervisor stop from sync code (signal handlers, commands)."""
        if self._stop_task is None or self._stop_task.done():
            self._stop_task = asyncio.get_running_loop().create_task(self.supervisor.stop())

    async def shutdown(self) -> None:
        """Graceful shutdown with proper cleanup. Safe to call twice."""
        if self._shutdown_done:
            return
        self._shutdown_done = True
        logger.info("Initiating Graceful Shutdown")

        try:
            self.store.save()
        except StateStoreError as e:
            logger.error("Final State Save Failed", [("Error", str(e)[:100])])

        await self.scheduler.stop()
        await self.content.close()
        await self.health.stop()
        await self.supervisor.stop()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", format_duration(self.uptime_seconds, show_seconds=True)),
            ("Restart Requested", "Yes" if self.restart_requested else "No"),
        ], emoji="🛑")


__all__ = ["WaBot"]
