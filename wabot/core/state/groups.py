"""
WaBot - Group Settings Operations
=================================

Per-group settings: mute, greetings, rules and anti-link.
"""

from typing import Any, List, Tuple, TYPE_CHECKING

from wabot.core.logger import logger
from wabot.core.state.models import GroupSettings

if TYPE_CHECKING:
    from wabot.core.state.store import StateStore


_EDITABLE_FIELDS = {"muted", "welcome", "goodbye", "rules", "anti_link", "bot_enabled"}


class GroupsMixin:
    """Mixin for group settings operations."""

    def ensure_group(self: "StateStore", group_id: str) -> Tuple[GroupSettings, bool]:
        """
        Return the group's settings, creating default ones on first sight.

        Returns:
            (settings, created). Creation is persisted immediately.
        """
        settings = self.document.groups.get(group_id)
        if settings is not None:
            return settings, False

        settings = GroupSettings()
        self.document.groups[group_id] = settings
        self.save()

        logger.tree("Group Registered", [
            ("Group", group_id),
        ], emoji="👥")
        return settings, True

    def get_group(self: "StateStore", group_id: str) -> GroupSettings:
        """Settings for a group; unknown groups get (unsaved) defaults."""
        return self.document.groups.get(group_id) or GroupSettings()

    def update_group(self: "StateStore", group_id: str, **changes: Any) -> GroupSettings:
        """
        Apply field changes to a group's settings and persist.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown group fields: {', '.join(sorted(unknown))}")

        settings, _ = self.ensure_group(group_id)
        for name, value in changes.items():
            setattr(settings, name, value)
        self.save()

        logger.tree("Group Settings Updated", [
            ("Group", group_id),
            ("Fields", ", ".join(sorted(changes))),
        ], emoji="⚙️")
        return settings

    def known_groups(self: "StateStore") -> List[str]:
        """IDs of every group the bot has seen."""
        return list(self.document.groups)


__all__ = ["GroupsMixin"]
