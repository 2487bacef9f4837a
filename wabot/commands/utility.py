"""
WaBot - Utility Commands
========================

weather, calculate, dictionary, covid, news and reminder.

DESIGN:
    Content API failures never escape a command: ContentNotConfigured
    gets a "not configured" reply, any other ContentError gets the
    command's failure line. Reminders go through the managed scheduler
    so shutdown cancels them.
"""

from typing import Any, Dict, List

from wabot.commands.base import Category, Command, CommandContext
from wabot.core.errors import CalculationError, ContentError, ContentNotConfigured, TransportError
from wabot.core.logger import logger
from wabot.utils.calculator import evaluate, format_result
from wabot.utils.duration import parse_duration


REPLY_NOT_CONFIGURED = "This feature is not configured on this bot."

MAX_MEANINGS = 3
MAX_DEFINITIONS = 2
MAX_SYNONYMS = 5
NEWS_LIMIT = 5


def _number(value: Any) -> str:
    """Thousands separators for counts; "N/A" when the API left it out."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "N/A"
    return f"{value:,}"


# =============================================================================
# Formatters
# =============================================================================

def format_weather(data: Dict[str, Any]) -> str:
    main = data.get("main") or {}
    sys_info = data.get("sys") or {}
    wind = data.get("wind") or {}
    conditions = (data.get("weather") or [{}])[0]
    visibility = data.get("visibility")
    visibility_text = f"{visibility / 1000:g} km" if isinstance(visibility, (int, float)) else "N/A"

    return "\n".join([
        f"*Weather for {data.get('name', 'Unknown')}, {sys_info.get('country', '')}*",
        "",
        f"*Temperature:* {main.get('temp')}°C",
        f"*Feels Like:* {main.get('feels_like')}°C",
        f"*Min/Max:* {main.get('temp_min')}°C / {main.get('temp_max')}°C",
        f"*Humidity:* {main.get('humidity')}%",
        f"*Weather:* {conditions.get('main', '')} - {conditions.get('description', '')}",
        f"*Wind:* {wind.get('speed')} m/s, {wind.get('deg')}°",
        f"*Pressure:* {main.get('pressure')} hPa",
        f"*Visibility:* {visibility_text}",
    ])


def format_definition(entry: Dict[str, Any]) -> str:
    lines = [f'*Definitions for "{entry.get("word", "")}"*', ""]
    for meaning in (entry.get("meanings") or [])[:MAX_MEANINGS]:
        lines.append(f"*Part of Speech:* {meaning.get('partOfSpeech', 'unknown')}")
        for i, definition in enumerate((meaning.get("definitions") or [])[:MAX_DEFINITIONS], start=1):
            lines.append(f"*Definition {i}:* {definition.get('definition', '')}")
            if definition.get("example"):
                lines.append(f"*Example:* {definition['example']}")
        synonyms = meaning.get("synonyms") or []
        if synonyms:
            lines.append(f"*Synonyms:* {', '.join(synonyms[:MAX_SYNONYMS])}")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_covid(data: Dict[str, Any]) -> str:
    rows = [
        ("Cases", "cases"),
        ("Today's Cases", "todayCases"),
        ("Deaths", "deaths"),
        ("Today's Deaths", "todayDeaths"),
        ("Recovered", "recovered"),
        ("Active", "active"),
        ("Critical", "critical"),
        ("Cases Per Million", "casesPerOneMillion"),
        ("Deaths Per Million", "deathsPerOneMillion"),
        ("Tests", "tests"),
        ("Tests Per Million", "testsPerOneMillion"),
    ]
    lines = [f"*COVID-19 Stats for {data.get('country', 'Unknown')}*", ""]
    lines.extend(f"*{label}:* {_number(data.get(key))}" for label, key in rows)
    return "\n".join(lines)


def format_news(articles: List[Dict[str, Any]]) -> str:
    lines = ["*Latest News Headlines*", ""]
    for i, article in enumerate(articles, start=1):
        source = (article.get("source") or {}).get("name") or "Unknown"
        lines.append(f"*{i}. {article.get('title', '')}*")
        lines.append(article.get("description") or "No description available.")
        lines.append(f"Source: {source}")
        lines.append("")
    return "\n".join(lines).rstrip()


# =============================================================================
# Commands
# =============================================================================

class WeatherCommand(Command):
    name = "weather"
    category = Category.UTILITY
    usage = "<location>"
    description = "Get weather information"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please provide a location.")
            return
        try:
            data = await self.services.content.weather(ctx.arg_text)
        except ContentNotConfigured:
            await ctx.reply(REPLY_NOT_CONFIGURED)
            return
        except ContentError:
            await ctx.reply("Failed to fetch weather information. Please check the location and try again.")
            return
        await ctx.reply(format_weather(data))


class CalculateCommand(Command):
    name = "calculate"
    aliases = ("calc",)
    category = Category.UTILITY
    usage = "<expression>"
    description = "Calculate a math expression"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please provide an expression to calculate.")
            return
        expression = ctx.arg_text
        try:
            result = evaluate(expression)
        except CalculationError:
            await ctx.reply("Invalid expression. Please try again.")
            return
        await ctx.reply(f"*Expression:* {expression}\n*Result:* {format_result(result)}")


class DictionaryCommand(Command):
    name = "dictionary"
    aliases = ("define",)
    category = Category.UTILITY
    usage = "<word>"
    description = "Get word definition"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please provide a word to look up.")
            return
        try:
            entry = await self.services.content.define(ctx.args[0])
        except ContentError:
            await ctx.reply("Failed to fetch definition. Please check the word and try again.")
            return
        if entry is None:
            await ctx.reply("No definitions found.")
            return
        await ctx.reply(format_definition(entry))


class CovidCommand(Command):
    name = "covid"
    category = Category.UTILITY
    usage = "<country>"
    description = "Get COVID-19 stats"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please provide a country name.")
            return
        try:
            data = await self.services.content.covid(ctx.arg_text)
        except ContentError:
            await ctx.reply("Failed to fetch COVID-19 data. Please check the country name and try again.")
            return
        await ctx.reply(format_covid(data))


class NewsCommand(Command):
    name = "news"
    category = Category.UTILITY
    description = "Get latest news headlines"

    async def execute(self, ctx: CommandContext) -> None:
        try:
            articles = await self.services.content.news(limit=NEWS_LIMIT)
        except ContentNotConfigured:
            await ctx.reply(REPLY_NOT_CONFIGURED)
            return
        except ContentError:
            await ctx.reply("Failed to fetch news. Please try again later.")
            return
        if not articles:
            await ctx.reply("No news found.")
            return
        await ctx.reply(format_news(articles))


class ReminderCommand(Command):
    name = "reminder"
    aliases = ("remind",)
    category = Category.UTILITY
    usage = "<time> <message>"
    description = "Set a reminder (10s, 5m, 2h, 1d)"

    async def execute(self, ctx: CommandContext) -> None:
        if len(ctx.args) < 2:
            await ctx.reply("Please provide a time and message for the reminder.")
            return

        time_arg = ctx.args[0].lower()
        delay = parse_duration(time_arg)
        if delay is None:
            await ctx.reply("Invalid time format. Use 10s, 5m, 2h etc.")
            return

        text = " ".join(ctx.args[1:])
        chat_id = ctx.chat_id
        quoted_id = ctx.message.id
        transport = self.transport

        async def deliver() -> None:
            try:
                await transport.send_text(chat_id, f"*REMINDER:* {text}", quoted_id=quoted_id)
            except TransportError as e:
                logger.error("Reminder Delivery Failed", [
                    ("Chat", chat_id),
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)[:100]),
                ])

        self.services.scheduler.schedule(delay, deliver, label=text)
        await ctx.reply(f"Reminder set for {time_arg} from now.")


COMMANDS = [
    WeatherCommand,
    CalculateCommand,
    DictionaryCommand,
    CovidCommand,
    NewsCommand,
    ReminderCommand,
]
