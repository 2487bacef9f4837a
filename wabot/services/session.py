"""
WaBot - Session Lifecycle Supervisor
====================================

Owns the transport connection and keeps it alive.

DESIGN:
    States: DISCONNECTED -> PAIRING -> CONNECTED -> DISCONNECTED.

    run() connects, then reads transport events one at a time and awaits
    the message/membership handler before reading the next, so handlers
    never overlap. A close with reason logged_out ends run() for good;
    any other close, or a connection error, reconnects after a capped
    exponential backoff. That backoff loop is the only retry path.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from wabot.core.errors import TransportClosed, TransportError
from wabot.core.logger import logger
from wabot.transport.base import Transport
from wabot.transport.models import (
    CloseReason,
    ConnectionClosed,
    ConnectionOpened,
    InboundMessage,
    MembershipEvent,
    PairingEvent,
)


MessageHandler = Callable[[InboundMessage], Awaitable[None]]
MembershipHandler = Callable[[MembershipEvent], Awaitable[None]]


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    PAIRING = "pairing"
    CONNECTED = "connected"


# =============================================================================
# Session Supervisor
# =============================================================================

class SessionSupervisor:
    """
    Connection supervisor for a single WhatsApp session.

    Args:
        transport: The chat transport to drive.
        on_message: Awaited for every inbound message.
        on_membership: Awaited for every membership event.
        base_delay: First reconnect delay in seconds.
        max_delay: Reconnect delay cap in seconds.

    Attributes:
        state: Current SessionState.
        pairing_payload: Latest QR string or pairing code, if any.
        account: Account reported by the last successful open.
        reconnects: Number of reconnect attempts so far.
    """

    def __init__(
        self,
        transport: Transport,
        on_message: MessageHandler,
        on_membership: MembershipHandler,
        base_delay: float = 2.0,
        max_delay: float = 60.0,
    ) -> None:
        self.transport = transport
        self._on_message = on_message
        self._on_membership = on_membership
        self.base_delay = base_delay
        self.max_delay = max_delay

        self.state: SessionState = SessionState.DISCONNECTED
        self.pairing_payload: Optional[str] = None
        self.pairing_kind: Optional[str] = None
        self.account: str = ""
        self.reconnects: int = 0
        self.logged_out: bool = False

        self._stopping = asyncio.Event()
        self._attempt = 0

    @property
    def connected(self) -> bool:
        return self.state == SessionState.CONNECTED

    def backoff_delay(self, attempt: int) -> float:
        """Delay before reconnect attempt number `attempt` (0-based)."""
        return min(self.max_delay, self.base_delay * (2 ** attempt))

    # =========================================================================
    # Main Loop
    # =========================================================================

    async def run(self) -> None:
        """Connect and process events until logged out or stopped."""
        while not self._stopping.is_set():
            reason = await self._run_session()

            if self._stopping.is_set():
                break

            if reason == CloseReason.LOGGED_OUT:
                self.logged_out = True
                self.state = SessionState.DISCONNECTED
                logger.tree("Session Logged Out", [
                    ("Action", "Not reconnecting"),
                    ("Hint", "Delete the gateway session and pair again"),
                ], emoji="🚪")
                return

            delay = self.backoff_delay(self._attempt)
            self._attempt += 1
            self.reconnects += 1

            logger.tree("Session Reconnecting", [
                ("Reason", reason.value),
                ("Attempt", str(self._attempt)),
                ("Delay", f"{delay:g}s"),
            ], emoji="🔄")

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        self.state = SessionState.DISCONNECTED

    async def _run_session(self) -> CloseReason:
        """One connect-and-consume cycle. Returns why it ended."""
        reason = CloseReason.CONNECTION_LOST
        try:
            await self.transport.connect()
            async for event in self.transport.events():
                if isinstance(event, ConnectionClosed):
                    reason = event.reason
                    logger.tree("Session Closed", [
                        ("Reason", event.reason.value),
                        ("Detail", event.detail or "-"),
                    ], emoji="🔌")
                    break
                await self._handle_event(event)
        except TransportError as e:
            logger.error("Session Connection Error", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
        finally:
            self.state = SessionState.DISCONNECTED
            await self.transport.close()
        return reason

    async def _handle_event(self, event: object) -> None:
        if isinstance(event, PairingEvent):
            self.state = SessionState.PAIRING
            self.pairing_payload = event.payload
            self.pairing_kind = event.kind
            logger.tree("Pairing Required", [
                ("Kind", event.kind.upper()),
                ("Payload", event.payload),
                ("Hint", "Scan in WhatsApp > Linked Devices, or GET /pairing"),
            ], emoji="📱")
            return

        if isinstance(event, ConnectionOpened):
            self.state = SessionState.CONNECTED
            self.account = event.account
            self.pairing_payload = None
            self.pairing_kind = None
            self._attempt = 0
            logger.tree("Session Connected", [
                ("Account", event.account or "Unknown"),
                ("Reconnects", str(self.reconnects)),
            ], emoji="✅")
            return

        try:
            if isinstance(event, InboundMessage):
                await self._on_message(event)
            elif isinstance(event, MembershipEvent):
                await self._on_membership(event)
        except TransportClosed:
            raise
        except Exception as e:
            logger.error("Event Handler Failed", [
                ("Event", type(event).__name__),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])

    # =========================================================================
    # Control
    # =========================================================================

    async def request_pairing(self) -> Optional[str]:
        """Ask the transport to re-emit its pairing payload; returns the latest known one."""
        if self.state != SessionState.CONNECTED:
            try:
                await self.transport.request_pairing()
            except TransportError as e:
                logger.warning("Pairing Request Failed", [("Error", str(e)[:100])])
        return self.pairing_payload

    async def stop(self) -> None:
        """End run() and close the transport."""
        self._stopping.set()
        await self.transport.close()
        self.state = SessionState.DISCONNECTED
        logger.info("Session Supervisor Stopped")


__all__ = ["SessionSupervisor", "SessionState"]
