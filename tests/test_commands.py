"""
Tests for wabot/commands general, group, admin, fun, utility and media

Router-level tests drive each command through CommandRouter.handle_message
with a FakeTransport and a temporary state store.
"""

import pytest

from conftest import ADMIN, BOT_ADMIN, GROUP, MEMBER, VICTIM, make_message
from wabot.commands import ALL_COMMANDS, build_command_table
from wabot.core.errors import ContentError, ContentNotConfigured
from wabot.transport.models import Attachment, MediaKind, MembershipAction, QuotedMessage


# =============================================================================
# Command Table Tests
# =============================================================================

class TestCommandTable:
    """Tests for build_command_table"""

    def test_aliases_share_instance(self, services):
        table = services.commands
        assert table["calc"] is table["calculate"]
        assert table["define"] is table["dictionary"]
        assert table["remind"] is table["reminder"]
        assert table["savestatus"] is table["save"]

    def test_names_unique(self, services):
        names = [c.name for c in ALL_COMMANDS]
        assert len(names) == len(set(names))

    def test_duplicate_alias_rejected(self, services, monkeypatch):
        from wabot.commands import general

        monkeypatch.setattr(general.PingCommand, "aliases", ("help",))
        with pytest.raises(ValueError):
            build_command_table(services)


# =============================================================================
# General Command Tests
# =============================================================================

class TestGeneralCommands:
    """help, ping, info, profile"""

    @pytest.mark.asyncio
    async def test_help_lists_every_command(self, router, transport):
        await router.handle_message(make_message(".help"))

        text = transport.texts[0]
        for command_cls in ALL_COMMANDS:
            assert f".{command_cls.name}" in text
        assert "*Moderation:*" in text

    @pytest.mark.asyncio
    async def test_ping_two_replies(self, router, transport):
        await router.handle_message(make_message(".ping"))

        assert transport.texts[0] == "Pinging..."
        assert transport.texts[1].startswith("Pong! Latency: ")
        assert transport.texts[1].endswith("ms")

    @pytest.mark.asyncio
    async def test_info_counts(self, router, transport):
        await router.handle_message(make_message(".info"))

        text = transport.texts[0]
        assert "*Prefix:* ." in text
        assert "*Groups:* 1" in text
        assert f"*Commands:* {len(ALL_COMMANDS)}" in text

    @pytest.mark.asyncio
    async def test_profile(self, router, store, transport):
        store.warn_user("233200000002")
        await router.handle_message(make_message(".profile"))

        text = transport.texts[0]
        assert "*Warnings:* 1/3" in text
        assert "*Banned:* No" in text
        assert "*Last Seen:* just now" in text


# =============================================================================
# Group Command Tests
# =============================================================================

class TestGroupCommands:
    """Group management commands run by a group admin."""

    @pytest.mark.asyncio
    async def test_tagall_mentions_everyone(self, router, transport):
        await router.handle_message(make_message(".tagall", sender=ADMIN))

        target, text, mentions, quoted = transport.sent[0]
        assert text.startswith("Hey everyone!")
        assert set(mentions) == {ADMIN, MEMBER, VICTIM}
        assert quoted is None

    @pytest.mark.asyncio
    async def test_groupinfo(self, router, transport):
        await router.handle_message(make_message(".groupinfo"))

        text = transport.texts[0]
        assert "*Name:* Test Group" in text
        assert "*Member Count:* 3" in text
        assert "*Description:* A group for tests" in text

    @pytest.mark.asyncio
    async def test_kick(self, router, transport):
        await router.handle_message(make_message(".kick @v", sender=ADMIN, mentions=[VICTIM]))

        assert transport.membership == [(GROUP, [VICTIM], MembershipAction.REMOVE)]
        assert transport.texts == ["User @233200000003 has been kicked."]

    @pytest.mark.asyncio
    async def test_kick_failure_reply(self, router, transport):
        transport.fail_ops.add("update_membership")
        await router.handle_message(make_message(".kick @v", sender=ADMIN, mentions=[VICTIM]))
        assert transport.texts[0].startswith("Failed to kick @233200000003")

    @pytest.mark.asyncio
    async def test_add_normalizes_number(self, router, transport):
        await router.handle_message(make_message(".add +233200000009", sender=ADMIN))
        assert transport.membership == [(GROUP, ["233200000009@s.whatsapp.net"], MembershipAction.ADD)]

    @pytest.mark.asyncio
    async def test_add_rejects_non_digits(self, router, transport):
        await router.handle_message(make_message(".add abc", sender=ADMIN))
        assert transport.membership == []
        assert transport.texts == ["Please provide a valid phone number."]

    @pytest.mark.asyncio
    async def test_promote(self, router, transport):
        await router.handle_message(make_message(".promote @m", sender=ADMIN, mentions=[MEMBER]))

        assert transport.roles == [(GROUP, MEMBER, MembershipAction.PROMOTE)]
        assert transport.texts == ["User @233200000002 has been promoted to admin."]

    @pytest.mark.asyncio
    async def test_welcome_show_and_set(self, router, store, transport):
        await router.handle_message(make_message(".welcome", sender=ADMIN))
        assert transport.texts[-1] == "Current welcome message: Welcome to the group, @user!"

        await router.handle_message(make_message(".welcome Hi @user!", sender=ADMIN))
        assert store.get_group(GROUP).welcome == "Hi @user!"
        assert transport.texts[-1] == "Welcome message has been set."

    @pytest.mark.asyncio
    async def test_antilink_toggle(self, router, store, transport):
        await router.handle_message(make_message(".antilink on", sender=ADMIN))
        assert store.get_group(GROUP).anti_link is True

        await router.handle_message(make_message(".antilink maybe", sender=ADMIN))
        assert transport.texts[-1] == 'Invalid option. Use "on" or "off".'
        assert store.get_group(GROUP).anti_link is True

    @pytest.mark.asyncio
    async def test_mute_persisted(self, router, store, state_path):
        await router.handle_message(make_message(".mute", sender=ADMIN))
        assert '"muted": true' in state_path.read_text()


# =============================================================================
# Admin Command Tests
# =============================================================================

class TestAdminCommands:
    """setprefix, broadcast, restart"""

    @pytest.mark.asyncio
    async def test_setprefix(self, router, store, transport):
        await router.handle_message(make_message(".setprefix !", sender=BOT_ADMIN))

        assert store.prefix == "!"
        assert transport.texts == ["Prefix has been changed to: !"]

        await router.handle_message(make_message("!setprefix", sender=BOT_ADMIN))
        assert transport.texts[-1] == "Current prefix is: !"

    @pytest.mark.asyncio
    async def test_broadcast_counts_groups(self, router, store, transport):
        store.ensure_group("999@g.us")
        await router.handle_message(make_message(".broadcast hello all", sender=BOT_ADMIN))

        broadcasts = [s for s in transport.sent if s[1] == "*Broadcast Message*\n\nhello all"]
        assert {s[0] for s in broadcasts} == {GROUP, "999@g.us"}
        assert transport.texts[-1] == "Broadcast sent to 2 groups."

    @pytest.mark.asyncio
    async def test_restart_requests_exit(self, router, services, transport):
        await router.handle_message(make_message(".restart", sender=BOT_ADMIN))

        assert transport.texts == ["Restarting bot..."]
        services.request_restart.assert_called_once()


# =============================================================================
# Fun Command Tests
# =============================================================================

class TestFunCommands:
    """Content and game commands."""

    @pytest.mark.asyncio
    async def test_joke(self, router, content, transport):
        content.joke.return_value = ("Why?", "Because.")
        await router.handle_message(make_message(".joke"))
        assert transport.texts == ["*Joke*\n\nWhy?\n\nBecause."]

    @pytest.mark.asyncio
    async def test_joke_failure(self, router, content, transport):
        content.joke.side_effect = ContentError("down")
        await router.handle_message(make_message(".joke"))
        assert transport.texts == ["Failed to fetch a joke. Please try again later."]

    @pytest.mark.asyncio
    async def test_8ball_needs_question(self, router, transport):
        await router.handle_message(make_message(".8ball"))
        assert transport.texts == ["Please ask a question."]

    @pytest.mark.asyncio
    async def test_8ball_answer(self, router, transport):
        from wabot.commands.fun import EIGHT_BALL_ANSWERS

        await router.handle_message(make_message(".8ball will it work?"))
        answer = transport.texts[0].split("Answer: ", 1)[1]
        assert answer in EIGHT_BALL_ANSWERS
        assert len(EIGHT_BALL_ANSWERS) == 20

    @pytest.mark.asyncio
    async def test_flip(self, router, transport):
        await router.handle_message(make_message(".flip"))
        assert transport.texts[0].split("Result: ")[1] in ("Heads", "Tails")

    @pytest.mark.asyncio
    async def test_roll_range(self, router, transport):
        for _ in range(10):
            await router.handle_message(make_message(".roll 4"))
        results = [int(t.rsplit(" ", 1)[1]) for t in transport.texts]
        assert all(1 <= r <= 4 for r in results)

    @pytest.mark.asyncio
    async def test_roll_rejects_bad_sides(self, router, transport):
        await router.handle_message(make_message(".roll 1"))
        assert transport.texts[0].startswith("Please provide a number of sides")

    @pytest.mark.asyncio
    async def test_quotes_roundtrip(self, router, store, transport):
        await router.handle_message(make_message(".getquote"))
        assert transport.texts[-1] == "No quotes saved for this group!"

        await router.handle_message(make_message(".savequote be kind", sender=MEMBER))
        assert transport.texts[-1] == "Quote saved successfully!"

        await router.handle_message(make_message(".getquote", sender=ADMIN))
        target, text, mentions, _ = transport.sent[-1]
        assert text == 'Random Quote:\n\n"be kind"\n\n- Saved by @233200000002'
        assert mentions == [MEMBER]


# =============================================================================
# Utility Command Tests
# =============================================================================

class TestUtilityCommands:
    """weather, calculate, dictionary, covid, news, reminder"""

    @pytest.mark.asyncio
    async def test_calculate(self, router, transport):
        await router.handle_message(make_message(".calc 2 + 3 * 4"))
        assert transport.texts == ["*Expression:* 2 + 3 * 4\n*Result:* 14"]

    @pytest.mark.asyncio
    async def test_calculate_rejects_code(self, router, transport):
        await router.handle_message(make_message(".calculate __import__('os')"))
        assert transport.texts == ["Invalid expression. Please try again."]

    @pytest.mark.asyncio
    async def test_calculate_complex_result(self, router, transport):
        await router.handle_message(make_message(".calculate (-1)**0.5 // 1"))
        assert transport.texts == ["Invalid expression. Please try again."]

    @pytest.mark.asyncio
    async def test_weather_not_configured(self, router, content, transport):
        content.weather.side_effect = ContentNotConfigured("no key")
        await router.handle_message(make_message(".weather Accra"))
        assert transport.texts == ["This feature is not configured on this bot."]

    @pytest.mark.asyncio
    async def test_weather_format(self, router, content, transport):
        content.weather.return_value = {
            "name": "Accra",
            "sys": {"country": "GH"},
            "main": {"temp": 30, "feels_like": 33, "temp_min": 29, "temp_max": 31,
                     "humidity": 70, "pressure": 1012},
            "weather": [{"main": "Clouds", "description": "few clouds"}],
            "wind": {"speed": 4.1, "deg": 200},
            "visibility": 10000,
        }
        await router.handle_message(make_message(".weather Accra"))

        text = transport.texts[0]
        assert text.startswith("*Weather for Accra, GH*")
        assert "*Temperature:* 30°C" in text
        assert "*Visibility:* 10 km" in text

    @pytest.mark.asyncio
    async def test_dictionary_not_found(self, router, content, transport):
        content.define.return_value = None
        await router.handle_message(make_message(".define zzzz"))
        assert transport.texts == ["No definitions found."]

    @pytest.mark.asyncio
    async def test_dictionary_limits(self, router, content, transport):
        content.define.return_value = {
            "word": "run",
            "meanings": [
                {
                    "partOfSpeech": f"pos{i}",
                    "definitions": [{"definition": f"d{i}{j}"} for j in range(4)],
                    "synonyms": [f"s{k}" for k in range(8)],
                }
                for i in range(5)
            ],
        }
        await router.handle_message(make_message(".dictionary run"))

        text = transport.texts[0]
        assert text.count("*Part of Speech:*") == 3
        assert text.count("*Definition ") == 6
        assert "s4" in text and "s5" not in text

    @pytest.mark.asyncio
    async def test_covid_thousands(self, router, content, transport):
        content.covid.return_value = {"country": "Ghana", "cases": 171234, "deaths": 1462}
        await router.handle_message(make_message(".covid ghana"))

        text = transport.texts[0]
        assert "*Cases:* 171,234" in text
        assert "*Recovered:* N/A" in text

    @pytest.mark.asyncio
    async def test_news_empty(self, router, content, transport):
        content.news.return_value = []
        await router.handle_message(make_message(".news"))
        assert transport.texts == ["No news found."]

    @pytest.mark.asyncio
    async def test_reminder_schedules(self, router, scheduler, transport):
        await router.handle_message(make_message(".remind 5m stretch now", msg_id="R1"))

        assert transport.texts == ["Reminder set for 5m from now."]
        delay, callback = scheduler.schedule.call_args[0][:2]
        assert delay == 300

        await callback()
        assert transport.sent[-1] == (GROUP, "*REMINDER:* stretch now", [], "R1")

    @pytest.mark.asyncio
    async def test_reminder_bad_time(self, router, scheduler, transport):
        await router.handle_message(make_message(".reminder soon do it"))

        assert transport.texts == ["Invalid time format. Use 10s, 5m, 2h etc."]
        scheduler.schedule.assert_not_called()

    @pytest.mark.asyncio
    async def test_reminder_needs_text(self, router, transport):
        await router.handle_message(make_message(".reminder 5m"))
        assert transport.texts == ["Please provide a time and message for the reminder."]


# =============================================================================
# Media Command Tests
# =============================================================================

class TestMediaCommands:
    """save, sticker, image"""

    @pytest.mark.asyncio
    async def test_save_requires_reply(self, router, transport):
        await router.handle_message(make_message(".save"))
        assert transport.texts == ["Please reply to a status or message to save it!"]

    @pytest.mark.asyncio
    async def test_save_without_media(self, router, transport):
        quoted = QuotedMessage(id="Q1", sender=VICTIM, text="just text")
        await router.handle_message(make_message(".save", quoted=quoted))
        assert transport.texts == ["No media found in the message or status!"]

    @pytest.mark.asyncio
    async def test_save_image_sends_back(self, router, transport, config, image_attachment):
        transport.attachments["ATT1"] = b"jpeg-bytes"
        quoted = QuotedMessage(id="Q1", sender=VICTIM, attachment=image_attachment)

        await router.handle_message(make_message(".savestatus", quoted=quoted))

        assert transport.texts == ["Media saved successfully!"]
        target, path, kind, caption, mimetype, filename = transport.media[0]
        assert kind == MediaKind.IMAGE
        assert caption == "Here's your saved image!"
        assert path == config.media_dir / "1700000000000_233200000002.jpeg"
        assert path.read_bytes() == b"jpeg-bytes"

    @pytest.mark.asyncio
    async def test_save_document_filename(self, router, transport):
        doc = Attachment(id="DOC1", kind=MediaKind.DOCUMENT, mimetype="application/pdf")
        transport.attachments["DOC1"] = b"%PDF"
        quoted = QuotedMessage(id="Q1", attachment=doc)

        await router.handle_message(make_message(".save", quoted=quoted))

        assert transport.media[0][5] == "saved_document.pdf"

    @pytest.mark.asyncio
    async def test_save_download_failure(self, router, transport, image_attachment):
        transport.fail_ops.add("download")
        quoted = QuotedMessage(id="Q1", attachment=image_attachment)

        await router.handle_message(make_message(".save", quoted=quoted))

        assert transport.texts == ["Failed to save media. Please try again later."]
        assert transport.media == []

    @pytest.mark.asyncio
    async def test_sticker_requires_media(self, router, transport):
        await router.handle_message(make_message(".sticker"))
        assert transport.texts == ["Please send an image, or quote a message with an image."]

    @pytest.mark.asyncio
    async def test_sticker_from_image(self, router, transport, image_attachment):
        import io

        from PIL import Image

        buf = io.BytesIO()
        Image.new("RGB", (64, 32), (255, 0, 0)).save(buf, format="PNG")
        transport.attachments["ATT1"] = buf.getvalue()

        await router.handle_message(make_message(".sticker", attachment=image_attachment))

        target, path, kind, caption, mimetype, filename = transport.media[0]
        assert kind == MediaKind.STICKER
        assert mimetype == "image/webp"
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_sticker_rejects_garbage(self, router, transport, image_attachment):
        transport.attachments["ATT1"] = b"not an image"
        await router.handle_message(make_message(".sticker", attachment=image_attachment))
        assert transport.texts == ["That image could not be converted to a sticker."]

    @pytest.mark.asyncio
    async def test_image_search(self, router, content, transport):
        content.search_images.return_value = [
            {"urls": {"regular": "https://img.example/a.jpg"}, "alt_description": "a cat"},
        ]
        content.download.return_value = "image/jpeg"

        await router.handle_message(make_message(".image cat"))

        content.download.assert_awaited_once()
        assert transport.media[0][3] == "a cat"

    @pytest.mark.asyncio
    async def test_image_no_results(self, router, content, transport):
        content.search_images.return_value = []
        await router.handle_message(make_message(".image nothing"))
        assert transport.texts == ["No images found."]
