"""
WaBot - Test Fixtures
=====================

Shared fixtures for all tests.
"""

import os
import random
import tempfile
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Log into a throwaway directory; must be set before wabot is imported
os.environ.setdefault("WABOT_LOG_DIR", tempfile.mkdtemp(prefix="wabot-logs-"))
os.environ["TESTING"] = "1"

from wabot.commands import CommandRouter, Services, build_command_table  # noqa: E402
from wabot.core.config import Config  # noqa: E402
from wabot.core.errors import TransportError  # noqa: E402
from wabot.core.state import StateStore  # noqa: E402
from wabot.services.media import MediaFetcher  # noqa: E402
from wabot.transport.base import Transport  # noqa: E402
from wabot.transport.models import (  # noqa: E402
    Attachment,
    GroupRoster,
    InboundMessage,
    MediaKind,
    MembershipAction,
    Participant,
)


GROUP = "120363000000000001@g.us"
ADMIN = "233200000001@s.whatsapp.net"
MEMBER = "233200000002@s.whatsapp.net"
VICTIM = "233200000003@s.whatsapp.net"
BOT_ADMIN = "15550000000@s.whatsapp.net"


# =============================================================================
# Fake Transport
# =============================================================================

class FakeTransport(Transport):
    """
    In-memory Transport that records every outbound call.

    Attributes:
        sent: (target, text, mentions, quoted_id) for each send_text.
        media: (target, path, kind, caption, mimetype, filename) for each send_media.
        membership: (group, users, action) for each update_membership.
        roles: (group, user, action) for each set_group_role.
        rosters: Roster returned per group id.
        attachments: Bytes streamed per attachment id.
        fail_ops: Operation names that raise TransportError.
    """

    def __init__(self) -> None:
        self.sent: List[tuple] = []
        self.media: List[tuple] = []
        self.membership: List[tuple] = []
        self.roles: List[tuple] = []
        self.rosters: Dict[str, GroupRoster] = {}
        self.attachments: Dict[str, bytes] = {}
        self.fail_ops: set = set()
        self.pairing_requests = 0
        self.closed = False

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail_ops:
            raise TransportError(f"{op} failed")

    async def connect(self) -> None:
        self._maybe_fail("connect")

    async def close(self) -> None:
        self.closed = True

    async def events(self) -> AsyncIterator:
        return
        yield

    async def request_pairing(self) -> None:
        self.pairing_requests += 1

    async def send_text(self, target, text, mentions=None, quoted_id=None) -> None:
        self._maybe_fail("send_text")
        self.sent.append((target, text, list(mentions or []), quoted_id))

    async def send_media(self, target, path, kind, caption=None, mimetype=None, filename=None) -> None:
        self._maybe_fail("send_media")
        self.media.append((target, Path(path), kind, caption, mimetype, filename))

    async def download_attachment(self, attachment: Attachment) -> AsyncIterator[bytes]:
        self._maybe_fail("download")
        data = self.attachments.get(attachment.id, b"")
        for i in range(0, len(data), 4):
            yield data[i:i + 4]

    async def get_roster(self, group_id: str) -> GroupRoster:
        self._maybe_fail("get_roster")
        return self.rosters.get(group_id, GroupRoster(id=group_id))

    async def update_membership(self, group_id, users, action) -> None:
        self._maybe_fail("update_membership")
        self.membership.append((group_id, list(users), action))

    async def set_group_role(self, group_id, user, action) -> None:
        self._maybe_fail("set_group_role")
        self.roles.append((group_id, user, action))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @property
    def texts(self) -> List[str]:
        return [s[1] for s in self.sent]

    @property
    def removals(self) -> List[tuple]:
        return [m for m in self.membership if m[2] == MembershipAction.REMOVE]


# =============================================================================
# Builders
# =============================================================================

def make_message(
    text: str,
    sender: str = MEMBER,
    chat: str = GROUP,
    mentions: Optional[List[str]] = None,
    attachment: Optional[Attachment] = None,
    quoted=None,
    msg_id: str = "MSG1",
) -> InboundMessage:
    return InboundMessage(
        id=msg_id,
        chat_id=chat,
        sender=sender,
        text=text,
        mentions=list(mentions or []),
        attachment=attachment,
        quoted=quoted,
        push_name="Tester",
    )


def make_roster(group: str = GROUP, admins=(ADMIN,), members=(MEMBER, VICTIM)) -> GroupRoster:
    participants = [Participant(jid=j, is_admin=True) for j in admins]
    participants += [Participant(jid=j) for j in members]
    return GroupRoster(
        id=group,
        subject="Test Group",
        owner=admins[0] if admins else None,
        creation=1_700_000_000,
        description="A group for tests",
        participants=participants,
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "data" / "bot_state.json"


@pytest.fixture
def store(state_path):
    """Fresh state store with one seeded bot admin."""
    s = StateStore(state_path, default_prefix=".", admin_numbers=["15550000000"], warn_limit=3)
    s.load()
    return s


@pytest.fixture
def transport():
    t = FakeTransport()
    t.rosters[GROUP] = make_roster()
    return t


@pytest.fixture
def config(tmp_path):
    return Config(
        gateway_url="http://gateway.test",
        admin_numbers={"15550000000"},
        state_file=tmp_path / "data" / "bot_state.json",
        media_dir=tmp_path / "media",
    )


@pytest.fixture
def content():
    """Content client double; every API method is an AsyncMock."""
    client = MagicMock()
    for name in ("joke", "meme", "quote", "fact", "weather", "news", "define",
                 "covid", "search_images", "download", "close"):
        setattr(client, name, AsyncMock())
    return client


@pytest.fixture
def scheduler():
    s = MagicMock()
    s.schedule = MagicMock(return_value=1)
    return s


@pytest.fixture
def services(store, transport, config, content, scheduler):
    svc = Services(
        store=store,
        transport=transport,
        config=config,
        media=MediaFetcher(transport, config.media_dir, clock_ms=lambda: 1_700_000_000_000),
        content=content,
        scheduler=scheduler,
        request_restart=MagicMock(),
        rng=random.Random(42),
    )
    build_command_table(svc)
    return svc


@pytest.fixture
def router(services):
    return CommandRouter(services)


@pytest.fixture
def image_attachment():
    return Attachment(id="ATT1", kind=MediaKind.IMAGE, mimetype="image/jpeg")
