"""
WaBot - Media Commands
======================

save, sticker and image.

DESIGN:
    Downloads go through MediaFetcher, which writes into MEDIA_DIR and
    returns an empty result instead of raising. Saved files are kept;
    temporary files made for stickers and image search are removed
    after sending.
"""

import time
from pathlib import Path

from wabot.commands.base import Category, Command, CommandContext
from wabot.core.errors import ContentError, ContentNotConfigured, TransportError
from wabot.core.logger import logger
from wabot.services.media import MediaResult, select_attachment
from wabot.transport.models import MediaKind
from wabot.utils.sticker import StickerError, write_sticker


SAVED_CAPTIONS = {
    MediaKind.IMAGE: "Here's your saved image!",
    MediaKind.VIDEO: "Here's your saved video!",
}


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


class SaveCommand(Command):
    name = "save"
    aliases = ("savestatus",)
    category = Category.MEDIA
    description = "Save media from a replied message or status"

    async def execute(self, ctx: CommandContext) -> None:
        if ctx.message.quoted is None:
            await ctx.reply("Please reply to a status or message to save it!")
            return

        attachment = ctx.message.quoted.attachment
        if attachment is None:
            await ctx.reply("No media found in the message or status!")
            return

        result = await self.services.media.fetch_attachment(attachment, ctx.sender)
        if not result.ok:
            await ctx.reply("Failed to save media. Please try again later.")
            return

        await ctx.reply("Media saved successfully!")
        try:
            await self._send_back(ctx, result)
        except TransportError as e:
            logger.error("Saved Media Send Failed", [
                ("Chat", ctx.chat_id),
                ("File", result.path.name),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            await ctx.reply("Failed to send the saved media back.")

    async def _send_back(self, ctx: CommandContext, result: MediaResult) -> None:
        filename = None
        if result.kind == MediaKind.DOCUMENT:
            filename = f"saved_document.{result.extension}"
        await self.transport.send_media(
            ctx.chat_id,
            result.path,
            result.kind,
            caption=SAVED_CAPTIONS.get(result.kind),
            mimetype=result.mimetype,
            filename=filename,
        )


class StickerCommand(Command):
    name = "sticker"
    category = Category.MEDIA
    description = "Convert an image to a sticker"

    async def execute(self, ctx: CommandContext) -> None:
        attachment = select_attachment(ctx.message)
        if attachment is None:
            await ctx.reply("Please send an image, or quote a message with an image.")
            return
        if attachment.kind not in (MediaKind.IMAGE, MediaKind.STICKER):
            await ctx.reply("Only images can be converted to stickers.")
            return

        result = await self.services.media.fetch_attachment(attachment, ctx.sender)
        if not result.ok:
            await ctx.reply("Failed to download the image. Please try again later.")
            return

        dest = result.path.with_name(f"sticker_{result.path.stem}.webp")
        try:
            await write_sticker(result.path, dest)
            await self.transport.send_media(ctx.chat_id, dest, MediaKind.STICKER, mimetype="image/webp")
        except StickerError:
            await ctx.reply("That image could not be converted to a sticker.")
        except (TransportError, OSError) as e:
            logger.error("Sticker Failed", [
                ("Chat", ctx.chat_id),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            await ctx.reply("Failed to create the sticker. Please try again later.")
        finally:
            _discard(result.path)
            _discard(dest)


class ImageCommand(Command):
    name = "image"
    category = Category.MEDIA
    usage = "<query>"
    description = "Search for an image"

    async def execute(self, ctx: CommandContext) -> None:
        if not ctx.args:
            await ctx.reply("Please provide a search query.")
            return

        query = ctx.arg_text
        content = self.services.content
        try:
            results = await content.search_images(query)
        except ContentNotConfigured:
            await ctx.reply("This feature is not configured on this bot.")
            return
        except ContentError:
            await ctx.reply("Failed to fetch image. Please try again later.")
            return

        candidates = [r for r in results if isinstance(r, dict) and (r.get("urls") or {}).get("regular")]
        if not candidates:
            await ctx.reply("No images found.")
            return

        picked = self.services.rng.choice(candidates)
        dest = self.services.config.media_dir / f"image_{int(time.time() * 1000)}.jpg"
        try:
            mimetype = await content.download(picked["urls"]["regular"], dest)
            await self.transport.send_media(
                ctx.chat_id,
                dest,
                MediaKind.IMAGE,
                caption=picked.get("alt_description") or query,
                mimetype=mimetype,
            )
        except (ContentError, TransportError) as e:
            logger.warning("Image Search Send Failed", [
                ("Query", query[:50]),
                ("Error", str(e)[:100]),
            ])
            await ctx.reply("Failed to fetch image. Please try again later.")
        finally:
            _discard(dest)


COMMANDS = [SaveCommand, StickerCommand, ImageCommand]
