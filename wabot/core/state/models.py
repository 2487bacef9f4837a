"""
WaBot - State Record Types
==========================

Dataclasses for everything kept in the JSON state document.

DESIGN:
    Attribute names are Python-style; the JSON keys keep the camelCase
    names used by existing state files (warns, afkReason, lastSeen,
    antiLink, adminNumbers ...) so an old file loads unchanged.
    from_dict() tolerates missing keys and fills defaults; it raises
    ValueError only when a section has the wrong shape entirely.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

from wabot.core.constants import DEFAULT_GOODBYE, DEFAULT_RULES, DEFAULT_WELCOME


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def _require_mapping(value: Any, section: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"State section '{section}' must be an object")
    return value


# =============================================================================
# Group Settings
# =============================================================================

@dataclass
class GroupSettings:
    """Per-group moderation and greeting settings."""

    muted: bool = False
    welcome: str = DEFAULT_WELCOME
    goodbye: str = DEFAULT_GOODBYE
    rules: str = DEFAULT_RULES
    anti_link: bool = False
    bot_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "muted": self.muted,
            "welcome": self.welcome,
            "goodbye": self.goodbye,
            "rules": self.rules,
            "antiLink": self.anti_link,
            "botEnabled": self.bot_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroupSettings":
        data = _require_mapping(data, "group")
        return cls(
            muted=bool(data.get("muted", False)),
            welcome=str(data.get("welcome", DEFAULT_WELCOME)),
            goodbye=str(data.get("goodbye", DEFAULT_GOODBYE)),
            rules=str(data.get("rules", DEFAULT_RULES)),
            anti_link=bool(data.get("antiLink", False)),
            bot_enabled=bool(data.get("botEnabled", True)),
        )


# =============================================================================
# User Record
# =============================================================================

@dataclass
class UserRecord:
    """Per-user moderation counters and presence."""

    warns: int = 0
    banned: bool = False
    afk: bool = False
    afk_reason: str = ""
    last_seen: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warns": self.warns,
            "banned": self.banned,
            "afk": self.afk,
            "afkReason": self.afk_reason,
            "lastSeen": self.last_seen,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        data = _require_mapping(data, "user")
        return cls(
            warns=max(0, int(data.get("warns", 0) or 0)),
            banned=bool(data.get("banned", False)),
            afk=bool(data.get("afk", False)),
            afk_reason=str(data.get("afkReason", "") or ""),
            last_seen=int(data.get("lastSeen", 0) or 0),
        )


# =============================================================================
# Quote
# =============================================================================

@dataclass
class Quote:
    """A quote saved in a group."""

    text: str
    author: str
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "author": self.author, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quote":
        data = _require_mapping(data, "quote")
        return cls(
            text=str(data.get("text", "")),
            author=str(data.get("author", "")),
            timestamp=int(data.get("timestamp", 0) or 0),
        )


# =============================================================================
# Global Settings
# =============================================================================

@dataclass
class GlobalSettings:
    """Process-wide settings persisted alongside the rest of the state."""

    prefix: str = "."
    admin_numbers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"prefix": self.prefix, "adminNumbers": list(self.admin_numbers)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GlobalSettings":
        data = _require_mapping(data, "settings")
        admins = data.get("adminNumbers", []) or []
        if not isinstance(admins, list):
            raise ValueError("State field 'settings.adminNumbers' must be a list")
        return cls(
            prefix=str(data.get("prefix", ".") or "."),
            admin_numbers=[str(a) for a in admins],
        )


# =============================================================================
# Whole Document
# =============================================================================

@dataclass
class StateDocument:
    """The complete persisted state tree."""

    groups: Dict[str, GroupSettings] = field(default_factory=dict)
    users: Dict[str, UserRecord] = field(default_factory=dict)
    quotes: Dict[str, List[Quote]] = field(default_factory=dict)
    settings: GlobalSettings = field(default_factory=GlobalSettings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": {gid: g.to_dict() for gid, g in self.groups.items()},
            "users": {uid: u.to_dict() for uid, u in self.users.items()},
            "quotes": {gid: [q.to_dict() for q in qs] for gid, qs in self.quotes.items()},
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "StateDocument":
        if not isinstance(data, dict):
            raise ValueError("State document must be a JSON object")

        quotes: Dict[str, List[Quote]] = {}
        for gid, items in _require_mapping(data.get("quotes"), "quotes").items():
            if not isinstance(items, list):
                raise ValueError(f"Quotes for '{gid}' must be a list")
            quotes[gid] = [Quote.from_dict(q) for q in items]

        return cls(
            groups={
                gid: GroupSettings.from_dict(g)
                for gid, g in _require_mapping(data.get("groups"), "groups").items()
            },
            users={
                uid: UserRecord.from_dict(u)
                for uid, u in _require_mapping(data.get("users"), "users").items()
            },
            quotes=quotes,
            settings=GlobalSettings.from_dict(data.get("settings")),
        )


__all__ = [
    "GroupSettings",
    "UserRecord",
    "Quote",
    "GlobalSettings",
    "StateDocument",
    "now_ms",
]
