"""
WaBot - Group Management Commands
=================================

tagall, groupinfo, mute/unmute, kick, add, promote/demote, welcome,
goodbye, rules and antilink.

DESIGN:
    Transport failures on membership changes are logged and answered
    with a one-line failure reply; the group settings are never touched
    by a failed membership call.
"""

from datetime import datetime

from wabot.commands.base import Category, Command, CommandContext, Requirement, mention_of
from wabot.core.constants import REPLY_ADMIN_ONLY
from wabot.core.errors import TransportError
from wabot.core.logger import logger, LOG_TZ
from wabot.transport.models import MembershipAction
from wabot.utils.jid import jid_to_number, number_to_jid


def _log_membership_failure(action: str, ctx: CommandContext, target: str, error: Exception) -> None:
    logger.error(f"{action} Failed", [
        ("Group", ctx.chat_id),
        ("Target", target),
        ("By", ctx.sender_number),
        ("Error Type", type(error).__name__),
        ("Error", str(error)[:100]),
    ])


# =============================================================================
# Roster Commands
# =============================================================================

class TagAllCommand(Command):
    name = "tagall"
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    usage = "[message]"
    description = "Tag all group members"

    async def execute(self, ctx: CommandContext) -> None:
        roster = await ctx.get_roster()
        jids = [p.jid for p in roster.participants]
        tags = " ".join(f"@{jid_to_number(j)}" for j in jids)
        text = f"{ctx.arg_text or 'Hey everyone!'}\n\n{tags}"
        await ctx.send(text, mentions=jids)


class GroupInfoCommand(Command):
    name = "groupinfo"
    category = Category.GROUP
    requirement = Requirement.GROUP
    description = "Show group information"

    async def execute(self, ctx: CommandContext) -> None:
        roster = await ctx.get_roster()
        if roster.creation:
            created = datetime.fromtimestamp(roster.creation, LOG_TZ).strftime("%Y-%m-%d %I:%M %p %Z")
        else:
            created = "Unknown"

        await ctx.reply("\n".join([
            "*Group Information*",
            "",
            f"*Name:* {roster.subject or 'Unknown'}",
            f"*ID:* {ctx.chat_id}",
            f"*Created By:* {jid_to_number(roster.owner) if roster.owner else 'Unknown'}",
            f"*Created On:* {created}",
            f"*Member Count:* {len(roster.participants)}",
            f"*Description:* {roster.description or 'No description'}",
        ]))


# =============================================================================
# Mute
# =============================================================================

class MuteCommand(Command):
    name = "mute"
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    description = "Mute the bot in the group"

    async def execute(self, ctx: CommandContext) -> None:
        self.store.update_group(ctx.chat_id, muted=True)
        await ctx.reply("Bot has been muted in this group.")


class UnmuteCommand(Command):
    name = "unmute"
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    description = "Unmute the bot in the group"

    async def execute(self, ctx: CommandContext) -> None:
        self.store.update_group(ctx.chat_id, muted=False)
        await ctx.reply("Bot has been unmuted in this group.")


# =============================================================================
# Membership
# =============================================================================

class KickCommand(Command):
    name = "kick"
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    usage = "@user"
    description = "Kick a user from the group"

    async def execute(self, ctx: CommandContext) -> None:
        target = ctx.first_mention
        if target is None:
            await ctx.reply("Please mention the user you want to kick.")
            return

        tag, mentions = mention_of(target)
        try:
            await self.transport.update_membership(ctx.chat_id, [target], MembershipAction.REMOVE)
        except TransportError as e:
            _log_membership_failure("Kick", ctx, target, e)
            await ctx.reply(f"Failed to kick {tag}. Make sure I am an admin in this group.", mentions)
            return

        logger.tree("User Kicked", [
            ("Group", ctx.chat_id),
            ("Target", jid_to_number(target)),
            ("By", ctx.sender_number),
        ], emoji="👢")
        await ctx.reply(f"User {tag} has been kicked.", mentions)


class AddCommand(Command):
    name = "add"
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    usage = "<number>"
    description = "Add a user to the group"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please provide a number to add.")
            return

        jid = number_to_jid(ctx.args[0])
        if not jid:
            await ctx.reply("Please provide a valid phone number.")
            return

        try:
            await self.transport.update_membership(ctx.chat_id, [jid], MembershipAction.ADD)
        except TransportError as e:
            _log_membership_failure("Add", ctx, jid, e)
            await ctx.reply(
                "Failed to add user. Make sure the number is correct and the user "
                "has not restricted being added to groups."
            )
            return

        await ctx.reply("User added successfully.")


class _RoleCommand(Command):
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    usage = "@user"
    action: MembershipAction = MembershipAction.PROMOTE
    verb = ""
    done_text = ""

    async def execute(self, ctx: CommandContext) -> None:
        target = ctx.first_mention
        if target is None:
            await ctx.reply(f"Please mention the user you want to {self.verb}.")
            return

        tag, mentions = mention_of(target)
        try:
            await self.transport.set_group_role(ctx.chat_id, target, self.action)
        except TransportError as e:
            _log_membership_failure(self.verb.capitalize(), ctx, target, e)
            await ctx.reply(f"Failed to {self.verb} {tag}.", mentions)
            return

        await ctx.reply(f"User {tag} {self.done_text}", mentions)


class PromoteCommand(_RoleCommand):
    name = "promote"
    description = "Promote a user to admin"
    action = MembershipAction.PROMOTE
    verb = "promote"
    done_text = "has been promoted to admin."


class DemoteCommand(_RoleCommand):
    name = "demote"
    description = "Demote a user from admin"
    action = MembershipAction.DEMOTE
    verb = "demote"
    done_text = "has been demoted from admin."


# =============================================================================
# Greetings & Rules
# =============================================================================

class WelcomeCommand(Command):
    name = "welcome"
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    usage = "[message]"
    description = "Show or set the welcome message (@user is replaced)"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            current = self.store.get_group(ctx.chat_id).welcome
            await ctx.reply(f"Current welcome message: {current}")
            return
        self.store.update_group(ctx.chat_id, welcome=ctx.arg_text)
        await ctx.reply("Welcome message has been set.")


class GoodbyeCommand(Command):
    name = "goodbye"
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    usage = "[message]"
    description = "Show or set the goodbye message (@user is replaced)"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            current = self.store.get_group(ctx.chat_id).goodbye
            await ctx.reply(f"Current goodbye message: {current}")
            return
        self.store.update_group(ctx.chat_id, goodbye=ctx.arg_text)
        await ctx.reply("Goodbye message has been set.")


class RulesCommand(Command):
    name = "rules"
    category = Category.GROUP
    requirement = Requirement.GROUP
    usage = "[rules]"
    description = "Show the group rules (admins: set them)"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply(f"*Group Rules:*\n{self.store.get_group(ctx.chat_id).rules}")
            return
        if not ctx.is_admin:
            await ctx.reply(REPLY_ADMIN_ONLY)
            return
        self.store.update_group(ctx.chat_id, rules=ctx.arg_text)
        await ctx.reply("Group rules have been set.")


class AntiLinkCommand(Command):
    name = "antilink"
    category = Category.GROUP
    requirement = Requirement.GROUP_ADMIN
    usage = "[on|off]"
    description = "Toggle anti-link protection"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            enabled = self.store.get_group(ctx.chat_id).anti_link
            await ctx.reply(f"Anti-link is currently {'enabled' if enabled else 'disabled'}.")
            return

        option = ctx.args[0].lower()
        if option == "on":
            self.store.update_group(ctx.chat_id, anti_link=True)
            await ctx.reply("Anti-link has been enabled.")
        elif option == "off":
            self.store.update_group(ctx.chat_id, anti_link=False)
            await ctx.reply("Anti-link has been disabled.")
        else:
            await ctx.reply('Invalid option. Use "on" or "off".')


COMMANDS = [
    TagAllCommand,
    GroupInfoCommand,
    MuteCommand,
    UnmuteCommand,
    KickCommand,
    AddCommand,
    PromoteCommand,
    DemoteCommand,
    WelcomeCommand,
    GoodbyeCommand,
    RulesCommand,
    AntiLinkCommand,
]
