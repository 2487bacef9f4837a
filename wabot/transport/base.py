"""
WaBot - Transport Interface
===========================

The narrow surface the bot core needs from a WhatsApp connection.

DESIGN:
    The router, the commands, the media fetcher and the supervisor only
    see this ABC. The gateway adapter is the production implementation;
    tests use an in-memory fake.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import AsyncIterator, List, Optional

from wabot.transport.models import (
    Attachment,
    GroupRoster,
    MediaKind,
    MembershipAction,
    TransportEvent,
)


class Transport(ABC):
    """Abstract chat transport."""

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the session.

        Raises:
            TransportError: If the connection cannot be established.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the session. Safe to call more than once."""

    @abstractmethod
    def events(self) -> AsyncIterator[TransportEvent]:
        """
        Iterate over inbound events until the session ends.

        The last event of a session is normally a ConnectionClosed.
        """

    @abstractmethod
    async def request_pairing(self) -> None:
        """Ask the transport to re-emit the current pairing payload."""

    # =========================================================================
    # Messaging
    # =========================================================================

    @abstractmethod
    async def send_text(
        self,
        target: str,
        text: str,
        mentions: Optional[List[str]] = None,
        quoted_id: Optional[str] = None,
    ) -> None:
        """Send a text message, optionally mentioning JIDs and quoting a message."""

    @abstractmethod
    async def send_media(
        self,
        target: str,
        path: Path,
        kind: MediaKind,
        caption: Optional[str] = None,
        mimetype: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> None:
        """Send a local file as media of the given kind."""

    @abstractmethod
    def download_attachment(self, attachment: Attachment) -> AsyncIterator[bytes]:
        """Stream an attachment's bytes in chunks."""

    # =========================================================================
    # Groups
    # =========================================================================

    @abstractmethod
    async def get_roster(self, group_id: str) -> GroupRoster:
        """Group metadata and participants."""

    @abstractmethod
    async def update_membership(
        self,
        group_id: str,
        users: List[str],
        action: MembershipAction,
    ) -> None:
        """Add or remove participants (action ADD or REMOVE)."""

    @abstractmethod
    async def set_group_role(
        self,
        group_id: str,
        user: str,
        action: MembershipAction,
    ) -> None:
        """Promote or demote a participant (action PROMOTE or DEMOTE)."""


__all__ = ["Transport"]
