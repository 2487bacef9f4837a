"""
WaBot - State Package
=====================

Persistent JSON state: group settings, user records, quotes and settings.
"""

from wabot.core.state.models import (
    GlobalSettings,
    GroupSettings,
    Quote,
    StateDocument,
    UserRecord,
)
from wabot.core.state.moderation import WarnResult
from wabot.core.state.store import StateStore

__all__ = [
    "StateStore",
    "StateDocument",
    "GroupSettings",
    "UserRecord",
    "Quote",
    "GlobalSettings",
    "WarnResult",
]
