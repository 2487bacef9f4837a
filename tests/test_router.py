"""
Tests for wabot/commands/router.py

Covers prefix parsing, the routing gates (mute, ban, unknown command),
requirement denials for every privileged command, passive listeners and
membership greetings.
"""

from unittest.mock import AsyncMock

import pytest

from conftest import ADMIN, BOT_ADMIN, GROUP, MEMBER, VICTIM, make_message
from wabot.commands import ALL_COMMANDS, Requirement
from wabot.commands.router import parse_command
from wabot.core.constants import (
    REPLY_ADMIN_ONLY,
    REPLY_AFK_REMOVED,
    REPLY_BANNED,
    REPLY_BOT_ADMIN_ONLY,
    REPLY_GROUP_ONLY,
    REPLY_INTERNAL_ERROR,
    REPLY_LINKS_FORBIDDEN,
)
from wabot.core.errors import StateStoreError
from wabot.transport.models import MembershipAction, MembershipEvent


def _snapshot(store):
    """State document without lastSeen, which every message refreshes."""
    doc = store.document.to_dict()
    for user in doc["users"].values():
        user.pop("lastSeen")
    return doc


# =============================================================================
# parse_command() Tests
# =============================================================================

class TestParseCommand:
    """Tests for parse_command function."""

    def test_splits_name_and_args(self):
        assert parse_command(".warn @someone now", ".") == ("warn", ["@someone", "now"])

    def test_lowercases_name_only(self):
        assert parse_command(".HELP Me", ".") == ("help", ["Me"])

    def test_no_prefix_returns_none(self):
        assert parse_command("hello", ".") is None

    def test_bare_prefix_gives_empty_name(self):
        assert parse_command(".", ".") == ("", [])

    def test_multi_char_prefix(self):
        assert parse_command("!!ping", "!!") == ("ping", [])

    def test_collapses_whitespace(self):
        assert parse_command(".roll    20", ".") == ("roll", ["20"])


# =============================================================================
# Registration Tests
# =============================================================================

class TestRegistration:
    """First contact creates group and user records."""

    @pytest.mark.asyncio
    async def test_unknown_group_gets_defaults(self, router, store):
        await router.handle_message(make_message("hi there"))

        group = store.document.groups[GROUP]
        assert group.muted is False
        assert group.anti_link is False
        assert group.welcome == "Welcome to the group, @user!"

    @pytest.mark.asyncio
    async def test_user_created_and_persisted(self, router, store, state_path):
        await router.handle_message(make_message("hi"))

        assert "233200000002" in store.document.users
        assert state_path.exists()

    @pytest.mark.asyncio
    async def test_own_messages_ignored(self, router, store, transport):
        msg = make_message(".ping")
        msg.from_me = True
        await router.handle_message(msg)

        assert transport.sent == []
        assert store.document.users == {}

    @pytest.mark.asyncio
    async def test_status_broadcast_ignored(self, router, store):
        await router.handle_message(make_message(".ping", chat="status@broadcast"))
        assert store.document.users == {}

    @pytest.mark.asyncio
    async def test_save_failure_answers_internal_error(self, router, store, transport, monkeypatch):
        def broken_save():
            raise StateStoreError("disk full")

        monkeypatch.setattr(store, "save", broken_save)
        await router.handle_message(make_message(".ping"))

        assert transport.texts == [REPLY_INTERNAL_ERROR]


# =============================================================================
# Gate Tests
# =============================================================================

class TestGates:
    """Mute, ban and unknown-command handling."""

    @pytest.mark.asyncio
    async def test_unknown_command_reply(self, router, transport):
        await router.handle_message(make_message(".nosuch"))
        assert transport.texts == ["Unknown command: nosuch. Use .help to see available commands."]

    @pytest.mark.asyncio
    async def test_unknown_command_uses_current_prefix(self, router, store, transport):
        store.set_prefix("!")
        await router.handle_message(make_message("!nosuch"))
        assert transport.texts == ["Unknown command: nosuch. Use !help to see available commands."]

    @pytest.mark.asyncio
    async def test_muted_group_drops_non_admin(self, router, store, transport):
        store.update_group(GROUP, muted=True)
        await router.handle_message(make_message(".ping", sender=MEMBER))
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_muted_group_allows_group_admin(self, router, store, transport):
        store.update_group(GROUP, muted=True)
        await router.handle_message(make_message(".unmute", sender=ADMIN))

        assert store.get_group(GROUP).muted is False
        assert transport.texts == ["Bot has been unmuted in this group."]

    @pytest.mark.asyncio
    async def test_muted_group_allows_bot_admin(self, router, store, transport):
        store.update_group(GROUP, muted=True)
        await router.handle_message(make_message(".flip", sender=BOT_ADMIN))
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_banned_user_gets_notice_only(self, router, store, transport, services):
        store.set_banned("233200000002", True)
        execute = AsyncMock()
        services.commands["ping"].execute = execute

        await router.handle_message(make_message(".ping", sender=MEMBER))

        assert transport.texts == [REPLY_BANNED]
        execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_banned_bot_admin_not_blocked(self, router, store, transport):
        store.set_banned("15550000000", True)
        await router.handle_message(make_message(".flip", sender=BOT_ADMIN))
        assert REPLY_BANNED not in transport.texts

    @pytest.mark.asyncio
    async def test_handler_exception_answers_internal_error(self, router, transport, services):
        services.commands["ping"].execute = AsyncMock(side_effect=RuntimeError("boom"))
        await router.handle_message(make_message(".ping"))
        assert transport.texts == [REPLY_INTERNAL_ERROR]

    @pytest.mark.asyncio
    async def test_roster_failure_treated_as_non_admin(self, router, transport):
        transport.fail_ops.add("get_roster")
        await router.handle_message(make_message(".mute", sender=ADMIN))
        assert transport.texts == [REPLY_ADMIN_ONLY]


# =============================================================================
# Requirement Denial Tests
# =============================================================================

PRIVILEGED = [c for c in ALL_COMMANDS if c.requirement in (Requirement.GROUP_ADMIN, Requirement.BOT_ADMIN)]


class TestRequirementDenials:
    """Non-admins are denied every privileged command with no state change."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command_cls", PRIVILEGED, ids=lambda c: c.name)
    async def test_non_admin_denied(self, router, store, transport, command_cls):
        await router.handle_message(make_message("hello", sender=MEMBER))
        before = _snapshot(store)
        transport.sent.clear()

        text = f".{command_cls.name} something"
        await router.handle_message(make_message(text, sender=MEMBER, mentions=[VICTIM]))

        expected = REPLY_BOT_ADMIN_ONLY if command_cls.requirement == Requirement.BOT_ADMIN else REPLY_ADMIN_ONLY
        assert transport.texts == [expected]
        assert transport.membership == []
        assert transport.roles == []
        assert _snapshot(store) == before

    @pytest.mark.asyncio
    async def test_group_command_in_private_chat(self, router, transport):
        await router.handle_message(make_message(".groupinfo", chat=MEMBER))
        assert transport.texts == [REPLY_GROUP_ONLY]

    @pytest.mark.asyncio
    async def test_rules_setter_needs_admin(self, router, store, transport):
        await router.handle_message(make_message(".rules be nice", sender=MEMBER))

        assert transport.texts == [REPLY_ADMIN_ONLY]
        assert store.get_group(GROUP).rules == "No rules set yet."

    @pytest.mark.asyncio
    async def test_rules_readable_by_member(self, router, transport):
        await router.handle_message(make_message(".rules", sender=MEMBER))
        assert transport.texts == ["*Group Rules:*\nNo rules set yet."]


# =============================================================================
# AFK Tests
# =============================================================================

class TestAfk:
    """AFK set, clear and mention notices."""

    @pytest.mark.asyncio
    async def test_afk_then_message_clears(self, router, store, transport):
        await router.handle_message(make_message(".afk lunch"))
        assert store.get_user("233200000002").afk is True

        await router.handle_message(make_message("back"))

        assert store.get_user("233200000002").afk is False
        assert transport.texts[-1] == REPLY_AFK_REMOVED

    @pytest.mark.asyncio
    async def test_afk_command_does_not_clear_itself(self, router, store, transport):
        await router.handle_message(make_message(".afk"))
        await router.handle_message(make_message(".afk still away"))

        record = store.get_user("233200000002")
        assert record.afk is True
        assert record.afk_reason == "still away"
        assert REPLY_AFK_REMOVED not in transport.texts

    @pytest.mark.asyncio
    async def test_default_reason(self, router, transport):
        await router.handle_message(make_message(".afk"))
        assert transport.texts == ["You are now AFK: No reason specified"]

    @pytest.mark.asyncio
    async def test_mention_of_afk_user(self, router, store, transport):
        store.set_afk("233200000003", "sleeping")
        await router.handle_message(make_message("hey @233200000003", mentions=[VICTIM]))

        assert transport.sent[-1][1] == "@233200000003 is currently AFK: sleeping"
        assert transport.sent[-1][2] == [VICTIM]

    @pytest.mark.asyncio
    async def test_clear_suppressed_in_muted_group(self, router, store, transport):
        store.set_afk("233200000002", "away")
        store.update_group(GROUP, muted=True)

        await router.handle_message(make_message("back"))

        assert store.get_user("233200000002").afk is False
        assert transport.sent == []


# =============================================================================
# Anti-Link Tests
# =============================================================================

class TestAntiLink:
    """Anti-link listener."""

    @pytest.mark.asyncio
    async def test_member_link_removed(self, router, store, transport):
        store.update_group(GROUP, anti_link=True)
        await router.handle_message(make_message("join https://spam.example", sender=VICTIM))

        assert transport.texts[0] == REPLY_LINKS_FORBIDDEN
        assert transport.removals == [(GROUP, [VICTIM], MembershipAction.REMOVE)]
        assert transport.texts[1] == "@233200000003 has been removed for sending links."

    @pytest.mark.asyncio
    async def test_send_failure_contained(self, router, store, transport):
        store.update_group(GROUP, anti_link=True)
        transport.fail_ops = {"send_text"}

        await router.handle_message(make_message("see https://x.io", sender=VICTIM))

        assert transport.removals == [(GROUP, [VICTIM], MembershipAction.REMOVE)]
        assert transport.texts == []

    @pytest.mark.asyncio
    async def test_www_link_detected(self, router, store, transport):
        store.update_group(GROUP, anti_link=True)
        await router.handle_message(make_message("see www.example.com", sender=VICTIM))
        assert len(transport.removals) == 1

    @pytest.mark.asyncio
    async def test_admin_link_allowed(self, router, store, transport):
        store.update_group(GROUP, anti_link=True)
        await router.handle_message(make_message("https://ok.example", sender=ADMIN))
        assert transport.membership == []

    @pytest.mark.asyncio
    async def test_disabled_by_default(self, router, transport):
        await router.handle_message(make_message("https://spam.example", sender=VICTIM))
        assert transport.membership == []

    @pytest.mark.asyncio
    async def test_commands_not_scanned(self, router, store, transport):
        store.update_group(GROUP, anti_link=True)
        await router.handle_message(make_message(".8ball is https://x.example real?", sender=VICTIM))
        assert transport.membership == []


# =============================================================================
# Membership Tests
# =============================================================================

class TestMembership:
    """Welcome and goodbye messages."""

    @pytest.mark.asyncio
    async def test_welcome_for_known_group(self, router, store, transport):
        store.ensure_group(GROUP)
        await router.handle_membership(MembershipEvent(GROUP, [VICTIM], MembershipAction.ADD))

        assert transport.sent == [(GROUP, "Welcome to the group, @233200000003!", [VICTIM], None)]

    @pytest.mark.asyncio
    async def test_goodbye_uses_custom_template(self, router, store, transport):
        store.update_group(GROUP, goodbye="Bye @user, see you @user")
        await router.handle_membership(MembershipEvent(GROUP, [VICTIM], MembershipAction.REMOVE))

        assert transport.texts == ["Bye @233200000003, see you @user"]

    @pytest.mark.asyncio
    async def test_unknown_group_ignored(self, router, transport):
        await router.handle_membership(MembershipEvent(GROUP, [VICTIM], MembershipAction.ADD))
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_muted_group_ignored(self, router, store, transport):
        store.update_group(GROUP, muted=True)
        await router.handle_membership(MembershipEvent(GROUP, [VICTIM], MembershipAction.ADD))
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_promote_event_ignored(self, router, store, transport):
        store.ensure_group(GROUP)
        await router.handle_membership(MembershipEvent(GROUP, [VICTIM], MembershipAction.PROMOTE))
        assert transport.sent == []
