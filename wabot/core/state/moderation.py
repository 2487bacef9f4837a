"""
WaBot - Moderation Operations Module
====================================

Warning counter, ban flag and AFK status per user.

DESIGN:
    The warning counter is capped at the warn limit. A warn issued to a
    user already at the limit changes nothing and reports at_limit, so
    removal is requested exactly once: on the transition into the limit.
    Unwarn at zero is a no-op and never drives the counter negative.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, TYPE_CHECKING

from wabot.core.logger import logger
from wabot.core.state.models import UserRecord, now_ms

if TYPE_CHECKING:
    from wabot.core.state.store import StateStore


@dataclass(frozen=True)
class WarnResult:
    """
    Outcome of a warn operation.

    Attributes:
        count: Counter value after the operation.
        limit_reached: True only when this warn moved the counter onto the limit.
        already_at_limit: True when the user was at the limit before the warn.
    """

    count: int
    limit_reached: bool = False
    already_at_limit: bool = False


class ModerationMixin:
    """Mixin for user moderation state."""

    # =========================================================================
    # User Records
    # =========================================================================

    def ensure_user(self: "StateStore", user_id: str) -> Tuple[UserRecord, bool]:
        """
        Return the user's record, creating and persisting a default one.

        Returns:
            (record, created).
        """
        record = self.document.users.get(user_id)
        if record is not None:
            return record, False

        record = UserRecord()
        self.document.users[user_id] = record
        self.save()
        return record, True

    def get_user(self: "StateStore", user_id: str) -> Optional[UserRecord]:
        return self.document.users.get(user_id)

    def touch_user(self: "StateStore", user_id: str) -> UserRecord:
        """Refresh lastSeen in memory; it is persisted with the next save."""
        record, _ = self.ensure_user(user_id)
        record.last_seen = now_ms()
        return record

    # =========================================================================
    # Warnings
    # =========================================================================

    def warn_user(self: "StateStore", user_id: str) -> WarnResult:
        """
        Add one warning, capped at the configured limit.

        Returns:
            WarnResult describing the new counter and limit transition.
        """
        record, _ = self.ensure_user(user_id)

        if record.warns >= self.warn_limit:
            logger.tree("Warn Ignored (At Limit)", [
                ("User", user_id),
                ("Warnings", f"{record.warns}/{self.warn_limit}"),
            ], emoji="⚠️")
            return WarnResult(count=record.warns, already_at_limit=True)

        record.warns += 1
        self.save()

        reached = record.warns == self.warn_limit
        logger.tree("Warning Added", [
            ("User", user_id),
            ("Warnings", f"{record.warns}/{self.warn_limit}"),
            ("Limit Reached", "Yes" if reached else "No"),
        ], emoji="⚠️")
        return WarnResult(count=record.warns, limit_reached=reached)

    def unwarn_user(self: "StateStore", user_id: str) -> Optional[int]:
        """
        Remove one warning.

        Returns:
            The new count, or None when the user had no warnings.
        """
        record = self.document.users.get(user_id)
        if record is None or record.warns <= 0:
            return None

        record.warns -= 1
        self.save()

        logger.tree("Warning Removed", [
            ("User", user_id),
            ("Warnings", f"{record.warns}/{self.warn_limit}"),
        ], emoji="✅")
        return record.warns

    # =========================================================================
    # Ban
    # =========================================================================

    def set_banned(self: "StateStore", user_id: str, banned: bool) -> UserRecord:
        """Set or clear the bot-wide ban flag."""
        record, _ = self.ensure_user(user_id)
        record.banned = banned
        self.save()

        logger.tree("User Banned" if banned else "User Unbanned", [
            ("User", user_id),
        ], emoji="🔨" if banned else "🔓")
        return record

    def is_banned(self: "StateStore", user_id: str) -> bool:
        record = self.document.users.get(user_id)
        return bool(record and record.banned)

    # =========================================================================
    # AFK
    # =========================================================================

    def set_afk(self: "StateStore", user_id: str, reason: str) -> UserRecord:
        record, _ = self.ensure_user(user_id)
        record.afk = True
        record.afk_reason = reason
        self.save()
        return record

    def clear_afk(self: "StateStore", user_id: str) -> bool:
        """
        Clear AFK status.

        Returns:
            True if the user was AFK.
        """
        record = self.document.users.get(user_id)
        if record is None or not record.afk:
            return False

        record.afk = False
        record.afk_reason = ""
        self.save()
        return True


__all__ = ["ModerationMixin", "WarnResult"]
