"""
WaBot - Commands Package
========================

Chat commands grouped by category, plus the router that dispatches them.

Structure:
    - base.py: Requirement, Category, Services, CommandContext, Command
    - general.py / group.py / moderation.py / admin.py: core commands
    - fun.py / utility.py / media.py: content commands
    - listeners.py: anti-link and AFK mention listeners
    - router.py: CommandRouter
"""

from typing import Dict, List, Type

from wabot.core.logger import logger

from . import admin, fun, general, group, media, moderation, utility
from .base import Category, Command, CommandContext, Requirement, Services
from .router import CommandRouter, parse_command


ALL_COMMANDS: List[Type[Command]] = [
    *general.COMMANDS,
    *group.COMMANDS,
    *moderation.COMMANDS,
    *admin.COMMANDS,
    *fun.COMMANDS,
    *utility.COMMANDS,
    *media.COMMANDS,
]


def build_command_table(services: Services) -> Dict[str, Command]:
    """
    Instantiate every command and index it by name and aliases.

    The table is also stored on services.commands so help/info can read it.

    Raises:
        ValueError: If two commands claim the same name or alias.
    """
    table: Dict[str, Command] = {}
    for command_cls in ALL_COMMANDS:
        command = command_cls(services)
        for key in (command.name, *command.aliases):
            if key in table:
                raise ValueError(f"Duplicate command name: {key}")
            table[key] = command

    services.commands = table
    logger.tree("Commands Loaded", [
        ("Commands", str(len(ALL_COMMANDS))),
        ("Names + Aliases", str(len(table))),
    ], emoji="📋")
    return table


__all__ = [
    "ALL_COMMANDS",
    "build_command_table",
    "Category",
    "Command",
    "CommandContext",
    "CommandRouter",
    "Requirement",
    "Services",
    "parse_command",
]
