"""
WaBot - Media Fetcher Service
=============================

Downloads a message's media attachment to the media directory.

DESIGN:
    The attachment is taken from the message itself, or else from the
    message it quotes. Its byte stream is read fully into memory, then
    written as <MEDIA_DIR>/<epochMillis>_<requesterNumber>.<ext>, the
    extension being the MIME subtype without parameters.

    fetch() never raises for download or disk failures: it logs and
    returns an empty MediaResult so the calling command can answer with
    a one-line reply.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from wabot.core.errors import TransportError
from wabot.core.logger import logger
from wabot.transport.base import Transport
from wabot.transport.models import Attachment, InboundMessage, MediaKind
from wabot.utils.jid import jid_to_number


# =============================================================================
# Result Type
# =============================================================================

@dataclass
class MediaResult:
    """Outcome of a fetch. ok is False when nothing was saved."""

    path: Optional[Path] = None
    mimetype: str = ""
    kind: Optional[MediaKind] = None
    extension: str = ""

    @property
    def ok(self) -> bool:
        return self.path is not None


def extension_for(mimetype: str) -> str:
    """
    File extension from a MIME type's subtype.

    "image/jpeg" -> "jpeg", "audio/ogg; codecs=opus" -> "ogg", "" -> "bin"
    """
    base = (mimetype or "").split(";", 1)[0].strip()
    if "/" not in base:
        return "bin"
    subtype = base.split("/", 1)[1].strip().lower()
    safe = "".join(ch for ch in subtype if ch.isalnum() or ch in "-+.")
    return safe or "bin"


def select_attachment(message: InboundMessage) -> Optional[Attachment]:
    """The message's own attachment, else the quoted message's."""
    if message.attachment is not None:
        return message.attachment
    if message.quoted is not None:
        return message.quoted.attachment
    return None


# =============================================================================
# Media Fetcher
# =============================================================================

class MediaFetcher:
    """
    Saves attachments to disk.

    Args:
        transport: Source of attachment streams.
        media_dir: Directory files are written to (created on demand).
        clock_ms: Millisecond clock used for file names.
    """

    def __init__(
        self,
        transport: Transport,
        media_dir: Path,
        clock_ms: Optional[Callable[[], int]] = None,
    ) -> None:
        self.transport = transport
        self.media_dir = Path(media_dir)
        self._clock_ms = clock_ms or (lambda: int(time.time() * 1000))

    async def fetch(self, message: InboundMessage, requester: str) -> MediaResult:
        """
        Download the media attached to (or quoted by) message.

        Args:
            message: The inbound message.
            requester: JID or number of the user asking; used in the file name.

        Returns:
            MediaResult; empty when there is no media or saving failed.
        """
        attachment = select_attachment(message)
        if attachment is None:
            return MediaResult()
        return await self.fetch_attachment(attachment, requester)

    async def fetch_attachment(self, attachment: Attachment, requester: str) -> MediaResult:
        """Download one attachment; see fetch()."""
        extension = extension_for(attachment.mimetype)
        path = self.media_dir / f"{self._clock_ms()}_{jid_to_number(requester)}.{extension}"

        try:
            chunks = []
            async for chunk in self.transport.download_attachment(attachment):
                chunks.append(chunk)
            data = b"".join(chunks)

            self.media_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except (TransportError, OSError) as e:
            logger.error("Media Download Failed", [
                ("Attachment", attachment.id),
                ("Kind", attachment.kind.value),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return MediaResult()

        logger.tree("Media Saved", [
            ("File", path.name),
            ("Kind", attachment.kind.value),
            ("MIME", attachment.mimetype),
            ("Size", f"{len(data)} bytes"),
        ], emoji="💾")

        return MediaResult(
            path=path,
            mimetype=attachment.mimetype,
            kind=attachment.kind,
            extension=extension,
        )


__all__ = ["MediaFetcher", "MediaResult", "extension_for", "select_attachment"]
