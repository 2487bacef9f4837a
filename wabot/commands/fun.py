"""
WaBot - Fun Commands
====================

joke, meme, quote, fact, 8ball, flip, roll, savequote and getquote.
"""

import time
from pathlib import Path
from urllib.parse import urlparse

from wabot.commands.base import Category, Command, CommandContext, Requirement
from wabot.core.constants import MAX_ROLL_SIDES
from wabot.core.errors import ContentError, TransportError
from wabot.core.logger import logger
from wabot.transport.models import MediaKind
from wabot.utils.jid import number_to_jid


EIGHT_BALL_ANSWERS = (
    "It is certain.",
    "It is decidedly so.",
    "Without a doubt.",
    "Yes, definitely.",
    "You may rely on it.",
    "As I see it, yes.",
    "Most likely.",
    "Outlook good.",
    "Yes.",
    "Signs point to yes.",
    "Reply hazy, try again.",
    "Ask again later.",
    "Better not tell you now.",
    "Cannot predict now.",
    "Concentrate and ask again.",
    "Don't count on it.",
    "My reply is no.",
    "My sources say no.",
    "Outlook not so good.",
    "Very doubtful.",
)

DEFAULT_ROLL_SIDES = 6


# =============================================================================
# Content API Commands
# =============================================================================

class JokeCommand(Command):
    name = "joke"
    category = Category.FUN
    description = "Get a random joke"

    async def execute(self, ctx: CommandContext) -> None:
        try:
            setup, punchline = await self.services.content.joke()
        except ContentError:
            await ctx.reply("Failed to fetch a joke. Please try again later.")
            return
        await ctx.reply(f"*Joke*\n\n{setup}\n\n{punchline}")


class MemeCommand(Command):
    name = "meme"
    category = Category.FUN
    description = "Get a random meme"

    async def execute(self, ctx: CommandContext) -> None:
        suffix = ".jpg"
        dest = None
        try:
            title, url = await self.services.content.meme()
            suffix = Path(urlparse(url).path).suffix or suffix
            dest = self.services.config.media_dir / f"meme_{int(time.time() * 1000)}{suffix}"
            mimetype = await self.services.content.download(url, dest)
            await self.transport.send_media(ctx.chat_id, dest, MediaKind.IMAGE, caption=title, mimetype=mimetype)
        except (ContentError, TransportError) as e:
            logger.warning("Meme Failed", [("Error", str(e)[:100])])
            await ctx.reply("Failed to fetch a meme. Please try again later.")
        finally:
            if dest is not None and dest.exists():
                dest.unlink()


class QuoteCommand(Command):
    name = "quote"
    category = Category.FUN
    description = "Get a random quote"

    async def execute(self, ctx: CommandContext) -> None:
        try:
            content, author = await self.services.content.quote()
        except ContentError:
            await ctx.reply("Failed to fetch a quote. Please try again later.")
            return
        await ctx.reply(f'*"{content}"*\n\n- {author}')


class FactCommand(Command):
    name = "fact"
    category = Category.FUN
    description = "Get a random fact"

    async def execute(self, ctx: CommandContext) -> None:
        try:
            fact = await self.services.content.fact()
        except ContentError:
            await ctx.reply("Failed to fetch a fact. Please try again later.")
            return
        await ctx.reply(f"*Random Fact*\n\n{fact}")


# =============================================================================
# Games
# =============================================================================

class EightBallCommand(Command):
    name = "8ball"
    category = Category.FUN
    usage = "<question>"
    description = "Ask the magic 8-ball"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please ask a question.")
            return
        answer = self.services.rng.choice(EIGHT_BALL_ANSWERS)
        await ctx.reply(f"*Magic 8-Ball*\n\nQuestion: {ctx.arg_text}\n\nAnswer: {answer}")


class FlipCommand(Command):
    name = "flip"
    category = Category.FUN
    description = "Flip a coin"

    async def execute(self, ctx: CommandContext) -> None:
        result = "Heads" if self.services.rng.random() < 0.5 else "Tails"
        await ctx.reply(f"*Coin Flip*\n\nResult: {result}")


class RollCommand(Command):
    name = "roll"
    category = Category.FUN
    usage = "[sides]"
    description = "Roll a dice (default 6 sides)"

    async def execute(self, ctx: CommandContext) -> None:
        sides = DEFAULT_ROLL_SIDES
        if ctx.args:
            try:
                sides = int(ctx.args[0])
            except ValueError:
                sides = 0
            if not 2 <= sides <= MAX_ROLL_SIDES:
                await ctx.reply(f"Please provide a number of sides between 2 and {MAX_ROLL_SIDES}.")
                return

        result = self.services.rng.randint(1, sides)
        await ctx.reply(f"*Dice Roll* ({sides}-sided)\n\nResult: {result}")


# =============================================================================
# Saved Quotes
# =============================================================================

class SaveQuoteCommand(Command):
    name = "savequote"
    category = Category.FUN
    requirement = Requirement.GROUP
    usage = "<text>"
    description = "Save a quote for this group"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please provide a quote to save!")
            return
        self.store.add_quote(ctx.chat_id, ctx.arg_text, ctx.sender_number)
        await ctx.reply("Quote saved successfully!")


class GetQuoteCommand(Command):
    name = "getquote"
    category = Category.FUN
    requirement = Requirement.GROUP
    description = "Get a random saved quote"

    async def execute(self, ctx: CommandContext) -> None:
        quote = self.store.random_quote(ctx.chat_id, self.services.rng)
        if quote is None:
            await ctx.reply("No quotes saved for this group!")
            return
        await ctx.reply(
            f'Random Quote:\n\n"{quote.text}"\n\n- Saved by @{quote.author}',
            mentions=[number_to_jid(quote.author)],
        )


COMMANDS = [
    JokeCommand,
    MemeCommand,
    QuoteCommand,
    FactCommand,
    EightBallCommand,
    FlipCommand,
    RollCommand,
    SaveQuoteCommand,
    GetQuoteCommand,
]
