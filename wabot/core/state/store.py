"""
WaBot - State Store
===================

The single persisted store for groups, users, quotes and settings.

DESIGN:
    One StateStore is created at startup and handed by reference to the
    router, the commands and the scheduler. Each concern lives in its own
    mixin; the composed class only wires them to the shared document.
"""

from pathlib import Path
from typing import Iterable

from wabot.core.constants import DEFAULT_WARN_LIMIT
from wabot.core.state.base import StateBase
from wabot.core.state.groups import GroupsMixin
from wabot.core.state.moderation import ModerationMixin
from wabot.core.state.quotes import QuotesMixin
from wabot.core.state.settings import SettingsMixin


class StateStore(
    StateBase,
    GroupsMixin,
    ModerationMixin,
    QuotesMixin,
    SettingsMixin,
):
    """
    JSON-file backed state store.

    Args:
        path: Location of the state file.
        default_prefix: Prefix used when the file holds none.
        admin_numbers: Bot admin numbers always present in the admin list.
        warn_limit: Warning count that triggers removal.
    """

    def __init__(
        self,
        path: Path,
        default_prefix: str = ".",
        admin_numbers: Iterable[str] = (),
        warn_limit: int = DEFAULT_WARN_LIMIT,
    ) -> None:
        self._init_base(path, default_prefix, admin_numbers, warn_limit)


__all__ = ["StateStore"]
