"""
WaBot - Global Settings Operations
==================================

Command prefix and bot admin list.
"""

from typing import List, TYPE_CHECKING

from wabot.core.logger import logger

if TYPE_CHECKING:
    from wabot.core.state.store import StateStore


class SettingsMixin:
    """Mixin for process-wide persisted settings."""

    @property
    def prefix(self: "StateStore") -> str:
        return self.document.settings.prefix

    def set_prefix(self: "StateStore", prefix: str) -> None:
        """
        Change the command prefix.

        Raises:
            ValueError: If the prefix is empty or contains whitespace.
        """
        if not prefix or any(ch.isspace() for ch in prefix):
            raise ValueError("Prefix must be non-empty and contain no whitespace")

        old = self.document.settings.prefix
        self.document.settings.prefix = prefix
        self.save()

        logger.tree("Prefix Changed", [
            ("Old", old),
            ("New", prefix),
        ], emoji="⚙️")

    @property
    def admin_numbers(self: "StateStore") -> List[str]:
        return list(self.document.settings.admin_numbers)

    def is_bot_admin(self: "StateStore", number: str) -> bool:
        return number in self.document.settings.admin_numbers


__all__ = ["SettingsMixin"]
