"""
Tests for wabot/utils calculator, sticker and jid helpers
"""

import io

import pytest
from PIL import Image

from wabot.core.errors import CalculationError
from wabot.utils.calculator import evaluate, format_result
from wabot.utils.jid import is_group_jid, jid_to_number, mention_tag, number_to_jid
from wabot.utils.sticker import StickerError, build_sticker, write_sticker


# =============================================================================
# Calculator Tests
# =============================================================================

class TestEvaluate:
    """Tests for the restricted arithmetic evaluator."""

    @pytest.mark.parametrize("expression,expected", [
        ("2 + 3 * 4", 14),
        ("(2 + 3) * 4", 20),
        ("10 / 4", 2.5),
        ("10 // 4", 2),
        ("10 % 4", 2),
        ("2 ** 10", 1024),
        ("-3 + +5", 2),
        ("1.5 * 2", 3.0),
    ])
    def test_arithmetic(self, expression, expected):
        assert evaluate(expression) == expected

    @pytest.mark.parametrize("expression", [
        "__import__('os').system('ls')",
        "abs(-1)",
        "x + 1",
        "[1, 2]",
        "'a' * 3",
        "True + 1",
        "1 if 1 else 2",
        "(1).real",
    ])
    def test_rejects_non_arithmetic(self, expression):
        with pytest.raises(CalculationError):
            evaluate(expression)

    def test_division_by_zero(self):
        with pytest.raises(CalculationError, match="Division by zero"):
            evaluate("1 / 0")

    def test_huge_power_fails_fast(self):
        with pytest.raises(CalculationError):
            evaluate("9 ** 9 ** 9")

    @pytest.mark.parametrize("expression", [
        "(-1) ** 0.5",
        "(-1) ** 0.5 // 1",
        "(-8) ** (1 / 3) % 2",
    ])
    def test_complex_results_rejected(self, expression):
        with pytest.raises(CalculationError):
            evaluate(expression)

    def test_negative_exponent_is_small_not_large(self):
        assert 0 < evaluate("2 ** -1000") < 1e-300
        assert evaluate("10 ** -2") == 0.01

    def test_syntax_error(self):
        with pytest.raises(CalculationError):
            evaluate("2 +")

    def test_empty_and_long(self):
        with pytest.raises(CalculationError):
            evaluate("   ")
        with pytest.raises(CalculationError):
            evaluate("1+" * 150 + "1")


class TestFormatResult:
    """Tests for format_result."""

    def test_whole_float(self):
        assert format_result(3.0) == "3"

    def test_fraction(self):
        assert format_result(0.1 + 0.2) == "0.3"

    def test_int(self):
        assert format_result(42) == "42"


# =============================================================================
# Sticker Tests
# =============================================================================

def _png(width: int, height: int) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (0, 128, 255)).save(buf, format="PNG")
    return buf.getvalue()


class TestSticker:
    """Tests for the sticker builder."""

    def test_output_is_512_webp(self):
        data = build_sticker(_png(800, 200))

        with Image.open(io.BytesIO(data)) as sticker:
            assert sticker.format == "WEBP"
            assert sticker.size == (512, 512)

    def test_letterbox_is_transparent(self):
        data = build_sticker(_png(800, 200))

        with Image.open(io.BytesIO(data)) as sticker:
            rgba = sticker.convert("RGBA")
            assert rgba.getpixel((256, 0))[3] == 0
            assert rgba.getpixel((256, 256))[3] == 255

    def test_garbage_rejected(self):
        with pytest.raises(StickerError):
            build_sticker(b"definitely not an image")

    @pytest.mark.asyncio
    async def test_write_sticker(self, tmp_path):
        source = tmp_path / "in.png"
        source.write_bytes(_png(10, 10))
        dest = await write_sticker(source, tmp_path / "out.webp")

        assert dest.exists()
        assert dest.read_bytes()[:4] == b"RIFF"


# =============================================================================
# JID Tests
# =============================================================================

class TestJid:
    """Tests for JID helpers."""

    def test_jid_to_number_strips_device(self):
        assert jid_to_number("233201234567:12@s.whatsapp.net") == "233201234567"
        assert jid_to_number("233201234567@s.whatsapp.net") == "233201234567"

    def test_number_to_jid(self):
        assert number_to_jid("+233 20 123-4567") == "233201234567@s.whatsapp.net"
        assert number_to_jid("abc") == ""

    def test_is_group_jid(self):
        assert is_group_jid("120363000000000001@g.us")
        assert not is_group_jid("233201234567@s.whatsapp.net")

    def test_mention_tag(self):
        assert mention_tag("233201234567@s.whatsapp.net") == "@233201234567"
