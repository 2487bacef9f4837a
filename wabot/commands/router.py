"""
WaBot - Command Router
======================

Turns inbound messages and membership events into command runs,
listener checks and greeting messages.

DESIGN:
    Message routing order:
    1. Own messages and status broadcasts -> ignore
    2. Register group/user, refresh lastSeen
    3. Clear AFK (unless the command is "afk")
    4. No prefix -> passive listeners, stop
    5. Muted group and sender not an admin -> drop silently
    6. Banned sender (not a bot admin) -> ban notice
    7. Unknown command -> unknown-command reply
    8. Command.run(): requirement check, then execute

    Group-admin status comes from the transport's roster and is only
    fetched when a decision needs it. Any exception from a command other
    than a closed transport is logged and answered with one fixed line.
"""

from typing import Dict, List, Optional, Tuple

from wabot.commands.base import Command, CommandContext, Services
from wabot.commands.listeners import ListenersMixin
from wabot.core.constants import (
    REPLY_AFK_REMOVED,
    REPLY_BANNED,
    REPLY_INTERNAL_ERROR,
    STATUS_BROADCAST_JID,
    USER_PLACEHOLDER,
)
from wabot.core.errors import StateStoreError, TransportClosed, TransportError
from wabot.core.logger import logger
from wabot.transport.models import GroupRoster, InboundMessage, MembershipAction, MembershipEvent
from wabot.utils.jid import jid_to_number


def parse_command(text: str, prefix: str) -> Optional[Tuple[str, List[str]]]:
    """
    Split "<prefix>name arg1 arg2" into ("name", ["arg1", "arg2"]).

    Returns:
        None when text does not start with prefix. The name is lowercased
        and may be empty when the text is the bare prefix.
    """
    if not prefix or not text.startswith(prefix):
        return None
    tokens = text[len(prefix):].split()
    if not tokens:
        return "", []
    return tokens[0].lower(), tokens[1:]


class CommandRouter(ListenersMixin):
    """
    Routes transport events for one bot.

    Args:
        services: Shared collaborators; services.commands must hold the
            command table (see build_command_table).
    """

    def __init__(self, services: Services) -> None:
        self.services = services

    @property
    def commands(self) -> Dict[str, Command]:
        return self.services.commands

    # =========================================================================
    # Helpers
    # =========================================================================

    async def reply_to(
        self,
        message: InboundMessage,
        text: str,
        mentions: Optional[List[str]] = None,
    ) -> None:
        """Quote-reply to message; delivery failures are logged, not raised."""
        await self.send_to(message.chat_id, text, mentions=mentions, quoted_id=message.id)

    async def send_to(
        self,
        chat_id: str,
        text: str,
        mentions: Optional[List[str]] = None,
        quoted_id: Optional[str] = None,
    ) -> None:
        try:
            await self.services.transport.send_text(
                chat_id, text, mentions=mentions, quoted_id=quoted_id
            )
        except TransportClosed:
            raise
        except TransportError as e:
            logger.error("Reply Failed", [
                ("Chat", chat_id),
                ("Text", text[:50]),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])

    async def fetch_roster(self, message: InboundMessage) -> Optional[GroupRoster]:
        if not message.is_group:
            return None
        try:
            return await self.services.transport.get_roster(message.chat_id)
        except TransportClosed:
            raise
        except TransportError as e:
            logger.warning("Roster Lookup Failed", [
                ("Group", message.chat_id),
                ("Error", str(e)[:100]),
            ])
            return None

    async def is_group_admin(self, message: InboundMessage) -> bool:
        roster = await self.fetch_roster(message)
        return bool(roster and roster.is_admin(message.sender))

    # =========================================================================
    # Messages
    # =========================================================================

    async def handle_message(self, message: InboundMessage) -> None:
        """Entry point for every inbound message."""
        if message.from_me or message.chat_id == STATUS_BROADCAST_JID:
            return
        try:
            await self._route(message)
        except StateStoreError as e:
            logger.error("State Save Failed During Message", [
                ("Chat", message.chat_id),
                ("Sender", message.sender_number),
                ("Error", str(e)[:100]),
            ])
            await self.reply_to(message, REPLY_INTERNAL_ERROR)

    async def _route(self, message: InboundMessage) -> None:
        store = self.services.store
        number = message.sender_number

        # -----------------------------------------------------------------
        # Registration
        # -----------------------------------------------------------------
        group = store.ensure_group(message.chat_id)[0] if message.is_group else None
        store.touch_user(number)

        prefix = store.prefix
        parsed = parse_command(message.text or "", prefix)
        name = parsed[0] if parsed else None

        # -----------------------------------------------------------------
        # AFK return
        # -----------------------------------------------------------------
        if name != "afk" and store.clear_afk(number):
            if group is None or not group.muted:
                await self.reply_to(message, REPLY_AFK_REMOVED)

        # -----------------------------------------------------------------
        # Plain text: listeners only
        # -----------------------------------------------------------------
        if parsed is None:
            await self.run_listeners(message, group)
            return
        if not name:
            return

        ctx = CommandContext(
            message=message,
            command=name,
            args=parsed[1],
            prefix=prefix,
            services=self.services,
            is_bot_admin=store.is_bot_admin(number),
        )
        if message.is_group:
            ctx.roster = await self.fetch_roster(message)
            ctx.is_group_admin = bool(ctx.roster and ctx.roster.is_admin(message.sender))

        # -----------------------------------------------------------------
        # Gates
        # -----------------------------------------------------------------
        if group is not None and group.muted and not ctx.is_admin:
            logger.debug("Muted Group Message Dropped", [
                ("Group", message.chat_id),
                ("Command", name),
            ])
            return

        if store.is_banned(number) and not ctx.is_bot_admin:
            await self.reply_to(message, REPLY_BANNED)
            return

        command = self.commands.get(name)
        if command is None:
            await self.reply_to(
                message,
                f"Unknown command: {name}. Use {prefix}help to see available commands.",
            )
            return

        # -----------------------------------------------------------------
        # Dispatch
        # -----------------------------------------------------------------
        logger.tree("Command", [
            ("Command", name),
            ("Sender", number),
            ("Chat", message.chat_id),
            ("Args", ctx.arg_text[:50] or "-"),
        ], emoji="⚡")

        try:
            await command.run(ctx)
        except TransportClosed:
            raise
        except Exception as e:
            logger.error("Command Failed", [
                ("Command", name),
                ("Sender", number),
                ("Chat", message.chat_id),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            await self.reply_to(message, REPLY_INTERNAL_ERROR)

    # =========================================================================
    # Membership
    # =========================================================================

    async def handle_membership(self, event: MembershipEvent) -> None:
        """Send welcome/goodbye messages for joins and leaves in known, unmuted groups."""
        if event.action == MembershipAction.ADD:
            field_name = "welcome"
        elif event.action == MembershipAction.REMOVE:
            field_name = "goodbye"
        else:
            return

        settings = self.services.store.document.groups.get(event.group_id)
        if settings is None or settings.muted:
            return

        template = getattr(settings, field_name)
        for jid in event.participants:
            text = template.replace(USER_PLACEHOLDER, f"@{jid_to_number(jid)}", 1)
            try:
                await self.services.transport.send_text(event.group_id, text, mentions=[jid])
            except TransportClosed:
                raise
            except TransportError as e:
                logger.error("Greeting Failed", [
                    ("Group", event.group_id),
                    ("Kind", field_name),
                    ("User", jid_to_number(jid)),
                    ("Error", str(e)[:100]),
                ])


__all__ = ["CommandRouter", "parse_command"]
