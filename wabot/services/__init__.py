"""
WaBot - Services Package
========================

Long-lived collaborators of the command layer.

DESIGN:
    Services are standalone classes created once in bot.py and passed to
    the router and commands. Each handles its own error cases:
    - SessionSupervisor: transport connection and reconnects
    - MediaFetcher: attachment download to the media directory
    - ContentClient: third-party content APIs
    - ReminderScheduler: managed delayed replies
"""

from wabot.services.content import ContentClient
from wabot.services.media import MediaFetcher, MediaResult
from wabot.services.scheduler import ReminderScheduler
from wabot.services.session import SessionState, SessionSupervisor

__all__ = [
    "ContentClient",
    "MediaFetcher",
    "MediaResult",
    "ReminderScheduler",
    "SessionState",
    "SessionSupervisor",
]
