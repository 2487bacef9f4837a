"""
WaBot - Command Base
====================

Shared types for every chat command: requirements, the per-invocation
context and the Command base class.

DESIGN:
    Each command is a small class with a name, aliases, a category and a
    Requirement. The router builds one static {name: Command} table and
    calls run(), which performs the requirement check and then execute().
    Commands reach their collaborators through the Services bundle rather
    than module-level globals.
"""

import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from wabot.core.config import Config
from wabot.core.constants import REPLY_ADMIN_ONLY, REPLY_BOT_ADMIN_ONLY, REPLY_GROUP_ONLY
from wabot.core.state import StateStore
from wabot.services.content import ContentClient
from wabot.services.media import MediaFetcher
from wabot.services.scheduler import ReminderScheduler
from wabot.transport.base import Transport
from wabot.transport.models import GroupRoster, InboundMessage
from wabot.utils.jid import jid_to_number


# =============================================================================
# Enums
# =============================================================================

class Requirement(str, Enum):
    """Who may run a command, and where."""

    NONE = "none"
    GROUP = "group"
    GROUP_ADMIN = "group_admin"
    BOT_ADMIN = "bot_admin"


class Category(str, Enum):
    """Help sections, in display order."""

    GENERAL = "General Commands"
    GROUP = "Group Management"
    MODERATION = "Moderation"
    ADMIN = "Bot Administration"
    FUN = "Fun Commands"
    UTILITY = "Utility Commands"
    MEDIA = "Media Commands"


# =============================================================================
# Services
# =============================================================================

@dataclass
class Services:
    """
    Collaborators shared by every command.

    Attributes:
        store: The persisted state store.
        transport: The chat transport.
        config: Process configuration.
        media: Attachment downloader.
        content: Third-party content API client.
        scheduler: Reminder scheduler.
        request_restart: Called by the restart command to end the process cleanly.
        commands: The command table, filled in by the router.
        rng: Random source for fun commands.
        started_at: Monotonic start time, for uptime.
    """

    store: StateStore
    transport: Transport
    config: Config
    media: MediaFetcher
    content: ContentClient
    scheduler: ReminderScheduler
    request_restart: Callable[[], None]
    commands: Dict[str, "Command"] = field(default_factory=dict)
    rng: random.Random = field(default_factory=random.Random)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at


# =============================================================================
# Command Context
# =============================================================================

@dataclass
class CommandContext:
    """Everything a command needs for one invocation."""

    message: InboundMessage
    command: str
    args: List[str]
    prefix: str
    services: Services
    is_bot_admin: bool = False
    is_group_admin: bool = False
    roster: Optional[GroupRoster] = None

    @property
    def store(self) -> StateStore:
        return self.services.store

    @property
    def transport(self) -> Transport:
        return self.services.transport

    @property
    def chat_id(self) -> str:
        return self.message.chat_id

    @property
    def is_group(self) -> bool:
        return self.message.is_group

    @property
    def group_id(self) -> Optional[str]:
        return self.message.group_id

    @property
    def sender(self) -> str:
        return self.message.sender

    @property
    def sender_number(self) -> str:
        return self.message.sender_number

    @property
    def arg_text(self) -> str:
        return " ".join(self.args)

    @property
    def is_admin(self) -> bool:
        """Group admin or bot admin."""
        return self.is_bot_admin or self.is_group_admin

    @property
    def first_mention(self) -> Optional[str]:
        return self.message.mentions[0] if self.message.mentions else None

    async def reply(self, text: str, mentions: Optional[List[str]] = None) -> None:
        """Send text to the chat, quoting the triggering message."""
        await self.transport.send_text(self.chat_id, text, mentions=mentions, quoted_id=self.message.id)

    async def send(self, text: str, mentions: Optional[List[str]] = None) -> None:
        """Send text to the chat without quoting."""
        await self.transport.send_text(self.chat_id, text, mentions=mentions)

    async def get_roster(self) -> GroupRoster:
        """The group's roster, fetched once per invocation."""
        if self.roster is None:
            self.roster = await self.transport.get_roster(self.chat_id)
        return self.roster


def check_requirement(requirement: Requirement, ctx: CommandContext) -> Optional[str]:
    """
    Evaluate a requirement.

    Returns:
        The denial reply, or None when the sender may proceed.
    """
    if requirement in (Requirement.GROUP, Requirement.GROUP_ADMIN) and not ctx.is_group:
        return REPLY_GROUP_ONLY
    if requirement == Requirement.GROUP_ADMIN and not ctx.is_admin:
        return REPLY_ADMIN_ONLY
    if requirement == Requirement.BOT_ADMIN and not ctx.is_bot_admin:
        return REPLY_BOT_ADMIN_ONLY
    return None


def mention_of(jid: str) -> Tuple[str, List[str]]:
    """("@<number>", [jid]) for use in a reply text and its mention list."""
    return f"@{jid_to_number(jid)}", [jid]


# =============================================================================
# Command Base Class
# =============================================================================

class Command:
    """
    Base class for chat commands.

    Subclasses set the class attributes and implement execute().
    """

    name: str = ""
    aliases: Tuple[str, ...] = ()
    category: Category = Category.GENERAL
    requirement: Requirement = Requirement.NONE
    usage: str = ""
    description: str = ""

    def __init__(self, services: Services) -> None:
        self.services = services

    @property
    def store(self) -> StateStore:
        return self.services.store

    @property
    def transport(self) -> Transport:
        return self.services.transport

    async def run(self, ctx: CommandContext) -> bool:
        """
        Check the requirement, then execute.

        Returns:
            False if the sender was denied.
        """
        denial = check_requirement(self.requirement, ctx)
        if denial is not None:
            await ctx.reply(denial)
            return False
        await self.execute(ctx)
        return True

    async def execute(self, ctx: CommandContext) -> None:
        raise NotImplementedError

    def help_line(self, prefix: str) -> str:
        usage = f" {self.usage}" if self.usage else ""
        return f"{prefix}{self.name}{usage} - {self.description}"


__all__ = [
    "Requirement",
    "Category",
    "Services",
    "CommandContext",
    "Command",
    "check_requirement",
    "mention_of",
]
