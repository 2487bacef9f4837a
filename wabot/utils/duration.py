"""
WaBot - Duration Utilities
==========================

Parsing of reminder delays and human-readable formatting of spans.

Usage:
    from wabot.utils.duration import parse_duration, format_duration

    seconds = parse_duration("5m")        # 300
    display = format_duration(93784)      # "1d 2h 3m"
    ago = format_relative(last_seen_ms)   # "3h 12m ago"
"""

import re
import time
from typing import Optional

from wabot.core.constants import (
    MS_PER_SECOND,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
)


# =============================================================================
# Constants
# =============================================================================

TIME_MULTIPLIERS = {
    "d": SECONDS_PER_DAY,
    "h": SECONDS_PER_HOUR,
    "m": SECONDS_PER_MINUTE,
    "s": 1,
}

MAX_DURATION_SECONDS = 7 * SECONDS_PER_DAY
"""Longest delay a reminder may be scheduled for."""

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")


# =============================================================================
# Parsing
# =============================================================================

def parse_duration(duration_str: str) -> Optional[int]:
    """
    Parse a single-unit duration such as "10s", "5m", "2h" or "1d".

    Args:
        duration_str: Duration text.

    Returns:
        Duration in seconds, or None when the text is malformed, zero,
        or longer than MAX_DURATION_SECONDS.

    Examples:
        >>> parse_duration("10s")
        10
        >>> parse_duration("2h")
        7200
        >>> parse_duration("10")
        None
    """
    if not duration_str:
        return None

    match = _DURATION_RE.match(duration_str.strip().lower())
    if not match:
        return None

    seconds = int(match.group(1)) * TIME_MULTIPLIERS[match.group(2)]
    if seconds <= 0 or seconds > MAX_DURATION_SECONDS:
        return None
    return seconds


# =============================================================================
# Formatting
# =============================================================================

def format_duration(seconds: Optional[float], max_units: int = 3, show_seconds: bool = False) -> str:
    """
    Format seconds as "1d 2h 3m".

    Args:
        seconds: Span in seconds.
        max_units: Maximum number of units shown.
        show_seconds: Whether a seconds component may appear.

    Examples:
        >>> format_duration(3661)
        "1h 1m"
        >>> format_duration(45)
        "< 1m"
        >>> format_duration(45, show_seconds=True)
        "45s"
    """
    if seconds is None or seconds <= 0:
        return "0s" if show_seconds else "0m"

    seconds = int(seconds)
    if seconds < SECONDS_PER_MINUTE and not show_seconds:
        return "< 1m"

    parts = []
    for unit, size in (("d", SECONDS_PER_DAY), ("h", SECONDS_PER_HOUR), ("m", SECONDS_PER_MINUTE)):
        if seconds >= size and len(parts) < max_units:
            value, seconds = divmod(seconds, size)
            parts.append(f"{value}{unit}")

    if show_seconds and seconds > 0 and len(parts) < max_units:
        parts.append(f"{seconds}s")

    return " ".join(parts) if parts else ("0s" if show_seconds else "< 1m")


def format_relative(timestamp_ms: int, now_ms: Optional[int] = None) -> str:
    """
    Describe how long ago an epoch-millisecond timestamp was.

    Examples:
        "just now", "5m ago", "2d 3h ago"
    """
    if now_ms is None:
        now_ms = int(time.time() * MS_PER_SECOND)
    elapsed = (now_ms - timestamp_ms) // MS_PER_SECOND
    if elapsed < SECONDS_PER_MINUTE:
        return "just now"
    return f"{format_duration(elapsed, max_units=2)} ago"


__all__ = [
    "parse_duration",
    "format_duration",
    "format_relative",
    "MAX_DURATION_SECONDS",
]
