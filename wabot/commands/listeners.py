"""
WaBot - Passive Listeners
=========================

Handlers for plain (non-command) messages: the anti-link filter and
AFK mention notices.

DESIGN:
    Mixed into CommandRouter so both listeners share its admin lookup and
    reply helpers. Anti-link runs even in muted groups; AFK notices do not,
    since a muted bot only answers admins.
"""

from typing import TYPE_CHECKING, Optional

from wabot.core.constants import LINK_PATTERN, REPLY_LINKS_FORBIDDEN
from wabot.core.errors import TransportClosed, TransportError
from wabot.core.logger import logger
from wabot.core.state import GroupSettings
from wabot.transport.models import InboundMessage, MembershipAction
from wabot.utils.jid import jid_to_number

if TYPE_CHECKING:
    from wabot.commands.router import CommandRouter


class ListenersMixin:
    """Mixin for the non-command message listeners."""

    async def run_listeners(
        self: "CommandRouter",
        message: InboundMessage,
        group: Optional[GroupSettings],
    ) -> None:
        if group is not None and group.anti_link:
            if await self._check_anti_link(message):
                return
        if group is None or not group.muted:
            await self._notify_afk_mentions(message)

    # =========================================================================
    # Anti-Link
    # =========================================================================

    async def _check_anti_link(self: "CommandRouter", message: InboundMessage) -> bool:
        """
        Remove a non-admin who posted a link.

        Returns:
            True if the message contained a link from a non-admin.
        """
        if not message.text or not LINK_PATTERN.search(message.text):
            return False

        number = message.sender_number
        if self.services.store.is_bot_admin(number):
            return False
        if await self.is_group_admin(message):
            return False

        await self.reply_to(message, REPLY_LINKS_FORBIDDEN)
        try:
            await self.services.transport.update_membership(
                message.chat_id, [message.sender], MembershipAction.REMOVE
            )
        except TransportClosed:
            raise
        except TransportError as e:
            logger.error("Anti-Link Removal Failed", [
                ("Group", message.chat_id),
                ("User", number),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return True

        logger.tree("Anti-Link Removal", [
            ("Group", message.chat_id),
            ("User", number),
            ("Text", message.text[:50]),
        ], emoji="🔗")
        await self.send_to(
            message.chat_id,
            f"@{number} has been removed for sending links.",
            mentions=[message.sender],
        )
        return True

    # =========================================================================
    # AFK Mentions
    # =========================================================================

    async def _notify_afk_mentions(self: "CommandRouter", message: InboundMessage) -> None:
        store = self.services.store
        for jid in message.mentions:
            record = store.get_user(jid_to_number(jid))
            if record is None or not record.afk:
                continue
            await self.reply_to(
                message,
                f"@{jid_to_number(jid)} is currently AFK: {record.afk_reason}",
                mentions=[jid],
            )


__all__ = ["ListenersMixin"]
