"""
WaBot - Moderation Commands
===========================

warn, unwarn, ban and unban.

DESIGN:
    Counter logic lives in the state store (ModerationMixin.warn_user);
    this module only turns a WarnResult into replies and, on the warn
    that reaches the limit, exactly one removal request.
"""

from wabot.commands.base import Category, Command, CommandContext, Requirement, mention_of
from wabot.core.errors import TransportError
from wabot.core.logger import logger
from wabot.transport.models import MembershipAction
from wabot.utils.jid import jid_to_number


class WarnCommand(Command):
    name = "warn"
    category = Category.MODERATION
    requirement = Requirement.GROUP_ADMIN
    usage = "@user"
    description = "Warn a user (removed at the warning limit)"

    async def execute(self, ctx: CommandContext) -> None:
        target = ctx.first_mention
        if target is None:
            await ctx.reply("Please mention the user you want to warn.")
            return

        tag, mentions = mention_of(target)
        limit = self.store.warn_limit
        result = self.store.warn_user(jid_to_number(target))

        if result.already_at_limit:
            await ctx.reply(f"User {tag} already has {limit} warnings.", mentions)
            return

        await ctx.reply(f"User {tag} has been warned. Total warnings: {result.count}", mentions)

        if not result.limit_reached:
            return

        try:
            await self.transport.update_membership(ctx.chat_id, [target], MembershipAction.REMOVE)
        except TransportError as e:
            logger.error("Warn Limit Removal Failed", [
                ("Group", ctx.chat_id),
                ("Target", jid_to_number(target)),
                ("Warnings", str(result.count)),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            await ctx.reply(f"User {tag} reached {limit} warnings but could not be removed.", mentions)
            return

        logger.tree("User Removed (Warn Limit)", [
            ("Group", ctx.chat_id),
            ("Target", jid_to_number(target)),
            ("By", ctx.sender_number),
        ], emoji="👢")
        await ctx.reply(f"User {tag} has been kicked for reaching {limit} warnings.", mentions)


class UnwarnCommand(Command):
    name = "unwarn"
    category = Category.MODERATION
    requirement = Requirement.GROUP_ADMIN
    usage = "@user"
    description = "Remove a warning from a user"

    async def execute(self, ctx: CommandContext) -> None:
        target = ctx.first_mention
        if target is None:
            await ctx.reply("Please mention the user you want to unwarn.")
            return

        tag, mentions = mention_of(target)
        remaining = self.store.unwarn_user(jid_to_number(target))
        if remaining is None:
            await ctx.reply(f"User {tag} has no warnings.", mentions)
            return

        await ctx.reply(f"A warning has been removed from {tag}. Total warnings: {remaining}", mentions)


class BanCommand(Command):
    name = "ban"
    category = Category.MODERATION
    requirement = Requirement.BOT_ADMIN
    usage = "@user"
    description = "Ban a user from using the bot"

    async def execute(self, ctx: CommandContext) -> None:
        target = ctx.first_mention
        if target is None:
            await ctx.reply("Please mention the user you want to ban.")
            return

        tag, mentions = mention_of(target)
        self.store.set_banned(jid_to_number(target), True)
        await ctx.reply(f"User {tag} has been banned from using the bot.", mentions)


class UnbanCommand(Command):
    name = "unban"
    category = Category.MODERATION
    requirement = Requirement.BOT_ADMIN
    usage = "@user"
    description = "Unban a user"

    async def execute(self, ctx: CommandContext) -> None:
        target = ctx.first_mention
        if target is None:
            await ctx.reply("Please mention the user you want to unban.")
            return

        tag, mentions = mention_of(target)
        self.store.set_banned(jid_to_number(target), False)
        await ctx.reply(f"User {tag} has been unbanned.", mentions)


COMMANDS = [WarnCommand, UnwarnCommand, BanCommand, UnbanCommand]
