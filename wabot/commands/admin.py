"""
WaBot - Bot Administration Commands
===================================

setprefix, broadcast and restart. Bot admins only.
"""

from wabot.commands.base import Category, Command, CommandContext, Requirement
from wabot.core.errors import TransportError
from wabot.core.logger import logger


class SetPrefixCommand(Command):
    name = "setprefix"
    category = Category.ADMIN
    requirement = Requirement.BOT_ADMIN
    usage = "[prefix]"
    description = "Show or change the command prefix"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply(f"Current prefix is: {self.store.prefix}")
            return

        try:
            self.store.set_prefix(ctx.args[0])
        except ValueError as e:
            await ctx.reply(str(e))
            return
        await ctx.reply(f"Prefix has been changed to: {ctx.args[0]}")


class BroadcastCommand(Command):
    name = "broadcast"
    category = Category.ADMIN
    requirement = Requirement.BOT_ADMIN
    usage = "<message>"
    description = "Broadcast a message to all groups"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please provide a message to broadcast.")
            return

        text = f"*Broadcast Message*\n\n{ctx.arg_text}"
        groups = self.store.known_groups()
        sent = 0

        for group_id in groups:
            try:
                await self.transport.send_text(group_id, text)
                sent += 1
            except TransportError as e:
                logger.warning("Broadcast Delivery Failed", [
                    ("Group", group_id),
                    ("Error", str(e)[:100]),
                ])

        logger.tree("Broadcast Sent", [
            ("By", ctx.sender_number),
            ("Delivered", f"{sent}/{len(groups)}"),
        ], emoji="📢")
        await ctx.reply(f"Broadcast sent to {sent} groups.")


class RestartCommand(Command):
    name = "restart"
    category = Category.ADMIN
    requirement = Requirement.BOT_ADMIN
    description = "Restart the bot (process manager brings it back)"

    async def execute(self, ctx: CommandContext) -> None:
        await ctx.reply("Restarting bot...")
        logger.tree("Restart Requested", [
            ("By", ctx.sender_number),
        ], emoji="🔄")
        self.services.request_restart()


COMMANDS = [SetPrefixCommand, BroadcastCommand, RestartCommand]
