"""
WaBot - JID Helpers
===================

Conversions between WhatsApp JIDs and bare phone numbers.
"""

from wabot.core.constants import GROUP_JID_SUFFIX, USER_JID_SUFFIX


def jid_to_number(jid: str) -> str:
    """
    Phone-number part of a JID.

    "233201234567:12@s.whatsapp.net" -> "233201234567"
    """
    user = jid.split("@", 1)[0]
    return user.split(":", 1)[0]


def number_to_jid(number: str) -> str:
    """
    User JID for a number; non-digits are dropped.

    Returns:
        The JID, or "" when the input has no digits.
    """
    digits = "".join(ch for ch in number if ch.isdigit())
    return f"{digits}{USER_JID_SUFFIX}" if digits else ""


def is_group_jid(jid: str) -> bool:
    return jid.endswith(GROUP_JID_SUFFIX)


def mention_tag(jid: str) -> str:
    """Inline mention text for a JID, e.g. "@233201234567"."""
    return f"@{jid_to_number(jid)}"


__all__ = ["jid_to_number", "number_to_jid", "is_group_jid", "mention_tag"]
