"""
WaBot - Centralized Constants
=============================

Magic numbers, JID suffixes and fixed reply texts.
Import from this module instead of hardcoding values.
"""

import re

# =============================================================================
# Time Constants
# =============================================================================

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
MS_PER_SECOND = 1000

# =============================================================================
# WhatsApp Identifiers
# =============================================================================

USER_JID_SUFFIX = "@s.whatsapp.net"
GROUP_JID_SUFFIX = "@g.us"
STATUS_BROADCAST_JID = "status@broadcast"

# =============================================================================
# Moderation
# =============================================================================

DEFAULT_WARN_LIMIT = 3

LINK_PATTERN = re.compile(r"(https?://|www\.)\S+", re.IGNORECASE)
"""Anything that looks like a URL; used by the anti-link listener."""

# =============================================================================
# Group Defaults
# =============================================================================

DEFAULT_WELCOME = "Welcome to the group, @user!"
DEFAULT_GOODBYE = "Goodbye, @user!"
DEFAULT_RULES = "No rules set yet."
USER_PLACEHOLDER = "@user"

# =============================================================================
# Media
# =============================================================================

STICKER_SIZE = 512
MAX_ROLL_SIDES = 1_000_000

# =============================================================================
# Network Timeouts (seconds)
# =============================================================================

GATEWAY_CONNECT_TIMEOUT = 30
GATEWAY_HEARTBEAT = 20
SHUTDOWN_TIMEOUT = 10

# =============================================================================
# Fixed Replies
# =============================================================================

REPLY_GROUP_ONLY = "This command can only be used in groups."
REPLY_ADMIN_ONLY = "Only admins can use this command."
REPLY_BOT_ADMIN_ONLY = "Only bot admins can use this command."
REPLY_BANNED = "You are banned from using the bot."
REPLY_AFK_REMOVED = "Your AFK status has been removed."
REPLY_INTERNAL_ERROR = "An error occurred while processing your command."
REPLY_LINKS_FORBIDDEN = "Links are not allowed in this group."
