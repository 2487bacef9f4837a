"""
WaBot - Sticker Builder
=======================

Converts an image into a WhatsApp sticker: a 512x512 transparent WebP
with the picture scaled to fit and centred.
"""

import asyncio
import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from wabot.core.constants import STICKER_SIZE


class StickerError(ValueError):
    """Raised when the input is not a decodable image."""


def build_sticker(data: bytes, size: int = STICKER_SIZE) -> bytes:
    """
    Render image bytes as sticker WebP bytes.

    Raises:
        StickerError: If Pillow cannot decode the input.
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            source.seek(0)
            image = source.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise StickerError("Input is not a supported image") from e

    image.thumbnail((size, size), Image.LANCZOS)

    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    offset = ((size - image.width) // 2, (size - image.height) // 2)
    canvas.paste(image, offset, image)

    out = io.BytesIO()
    canvas.save(out, format="WEBP", quality=80)
    return out.getvalue()


async def write_sticker(source: Path, dest: Path) -> Path:
    """Convert the image at source into a sticker file at dest, off the event loop."""
    def _convert() -> None:
        dest.write_bytes(build_sticker(source.read_bytes()))

    await asyncio.to_thread(_convert)
    return dest


__all__ = ["build_sticker", "write_sticker", "StickerError"]
