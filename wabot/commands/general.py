"""
WaBot - General Commands
========================

help, ping, info, afk and profile.
"""

import time
from collections import OrderedDict
from typing import Dict, List

import psutil

from wabot.commands.base import Category, Command, CommandContext
from wabot.utils.duration import format_duration, format_relative


class HelpCommand(Command):
    name = "help"
    category = Category.GENERAL
    description = "Show this help message"

    async def execute(self, ctx: CommandContext) -> None:
        sections: Dict[Category, List[str]] = OrderedDict((c, []) for c in Category)
        seen = set()
        for command in self.services.commands.values():
            if id(command) in seen:
                continue
            seen.add(id(command))
            sections[command.category].append(command.help_line(ctx.prefix))

        lines = [f"*{self.services.config.bot_name} Commands*"]
        for category, entries in sections.items():
            if not entries:
                continue
            lines.append("")
            lines.append(f"*{category.value}:*")
            lines.extend(entries)

        await ctx.reply("\n".join(lines))


class PingCommand(Command):
    name = "ping"
    category = Category.GENERAL
    description = "Check bot latency"

    async def execute(self, ctx: CommandContext) -> None:
        start = time.monotonic()
        await ctx.reply("Pinging...")
        latency_ms = int((time.monotonic() - start) * 1000)
        await ctx.reply(f"Pong! Latency: {latency_ms}ms")


class InfoCommand(Command):
    name = "info"
    category = Category.GENERAL
    description = "Bot information"

    async def execute(self, ctx: CommandContext) -> None:
        config = self.services.config
        document = self.store.document
        command_count = len({id(c) for c in self.services.commands.values()})
        memory_mb = psutil.Process().memory_info().rss / (1024 * 1024)

        await ctx.reply("\n".join([
            "*Bot Information*",
            "",
            f"*Name:* {config.bot_name}",
            f"*Version:* {config.bot_version}",
            f"*Uptime:* {format_duration(self.services.uptime_seconds)}",
            f"*Prefix:* {self.store.prefix}",
            f"*Groups:* {len(document.groups)}",
            f"*Users:* {len(document.users)}",
            f"*Commands:* {command_count}",
            f"*Memory:* {memory_mb:.1f} MB",
        ]))


class AfkCommand(Command):
    name = "afk"
    category = Category.GENERAL
    usage = "[reason]"
    description = "Set AFK status"

    async def execute(self, ctx: CommandContext) -> None:
        reason = ctx.arg_text or "No reason specified"
        self.store.set_afk(ctx.sender_number, reason)
        await ctx.reply(f"You are now AFK: {reason}")


class ProfileCommand(Command):
    name = "profile"
    category = Category.GENERAL
    description = "View your profile"

    async def execute(self, ctx: CommandContext) -> None:
        record, _ = self.store.ensure_user(ctx.sender_number)
        lines = [
            "*User Profile*",
            "",
            f"*Name:* {ctx.message.push_name or 'Unknown'}",
            f"*Number:* {ctx.sender_number}",
            f"*Warnings:* {record.warns}/{self.store.warn_limit}",
            f"*Banned:* {'Yes' if record.banned else 'No'}",
            f"*Last Seen:* {format_relative(record.last_seen)}",
            f"*AFK:* {'Yes' if record.afk else 'No'}",
        ]
        if record.afk:
            lines.append(f"*AFK Reason:* {record.afk_reason}")
        await ctx.reply("\n".join(lines))


COMMANDS = [HelpCommand, PingCommand, InfoCommand, AfkCommand, ProfileCommand]
