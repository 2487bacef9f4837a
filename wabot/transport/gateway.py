"""
WaBot - Gateway Transport
=========================

Transport implementation that talks to a WhatsApp gateway sidecar.

DESIGN:
    The sidecar owns the WhatsApp Web protocol. We hold one WebSocket to
    {base}/ws carrying two kinds of JSON frame:

        event:    {"type": "message", "data": {...}}
        response: {"id": 7, "ok": true, "result": {...}}

    Requests are {"id": 7, "op": "send_text", "args": {...}}; each id maps
    to a Future resolved by the reader task. Media bytes travel over plain
    HTTP: GET {base}/media/{id} to download, POST {base}/media to upload
    before a send_media op.

    When the socket drops, every pending request fails with TransportClosed
    and a ConnectionClosed event is queued unless the gateway already sent
    its own close frame.
"""

import asyncio
import itertools
import json
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp

from wabot.core.constants import GATEWAY_CONNECT_TIMEOUT, GATEWAY_HEARTBEAT
from wabot.core.errors import TransportClosed, TransportError
from wabot.core.logger import logger
from wabot.transport.base import Transport
from wabot.transport.models import (
    Attachment,
    CloseReason,
    ConnectionClosed,
    ConnectionOpened,
    GroupRoster,
    InboundMessage,
    MediaKind,
    MembershipAction,
    MembershipEvent,
    PairingEvent,
    TransportEvent,
)


# =============================================================================
# Constants
# =============================================================================

MEDIA_CHUNK_SIZE = 64 * 1024

_END_OF_STREAM = object()


def _http_base(url: str) -> str:
    if url.startswith("wss://"):
        return "https://" + url[len("wss://"):]
    if url.startswith("ws://"):
        return "http://" + url[len("ws://"):]
    return url


def _ws_base(url: str) -> str:
    if url.startswith("https://"):
        return "wss://" + url[len("https://"):]
    if url.startswith("http://"):
        return "ws://" + url[len("http://"):]
    return url


# =============================================================================
# Frame Adaptation
# =============================================================================

def parse_event_frame(frame: Dict[str, Any]) -> Optional[TransportEvent]:
    """
    Convert a gateway event frame into a transport event.

    Returns:
        The event, or None for frame types the bot does not consume.
    """
    frame_type = frame.get("type")
    data = frame.get("data") or {}

    if frame_type == "message":
        return InboundMessage.from_payload(data)
    if frame_type == "group-participants":
        return MembershipEvent.from_payload(data)
    if frame_type == "qr":
        return PairingEvent(payload=str(data.get("qr", "")), kind="qr")
    if frame_type == "pairing-code":
        return PairingEvent(payload=str(data.get("code", "")), kind="code")
    if frame_type == "open":
        return ConnectionOpened(account=str(data.get("account", "")))
    if frame_type == "close":
        return ConnectionClosed(
            reason=CloseReason.parse(data.get("reason")),
            detail=str(data.get("detail", "")),
        )
    return None


# =============================================================================
# Gateway Transport
# =============================================================================

class GatewayTransport(Transport):
    """
    aiohttp WebSocket client for the gateway sidecar.

    Args:
        base_url: Gateway root, http(s):// or ws(s)://.
        token: Optional bearer token sent on every request.
        request_timeout: Seconds to wait for an op response.
        session: Externally owned ClientSession (tests); created if None.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        request_timeout: float = 60,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._http_url = _http_base(base_url.rstrip("/"))
        self._ws_url = _ws_base(self._http_url) + "/ws"
        self._token = token
        self._request_timeout = request_timeout

        self._session = session
        self._owns_session = session is None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._reader: Optional[asyncio.Task] = None

        self._ids = itertools.count(1)
        self._pending: Dict[int, asyncio.Future] = {}
        self._queue: asyncio.Queue = asyncio.Queue()
        self._close_sent = False

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"} if self._token else {}

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        self._queue = asyncio.Queue()
        self._close_sent = False

        try:
            self._ws = await asyncio.wait_for(
                self._session.ws_connect(
                    self._ws_url,
                    heartbeat=GATEWAY_HEARTBEAT,
                    headers=self._headers(),
                ),
                timeout=GATEWAY_CONNECT_TIMEOUT,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Gateway connection failed: {e}") from e

        self._reader = asyncio.create_task(self._read_loop(self._ws))

        logger.tree("Gateway Connected", [
            ("URL", self._ws_url),
            ("Auth", "Bearer" if self._token else "None"),
        ], emoji="🔌")

    async def close(self) -> None:
        self._close_sent = True
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        self._reader = None

        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        self._ws = None

        self._fail_pending(TransportClosed("Transport closed"))
        self._queue.put_nowait(_END_OF_STREAM)

        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def events(self) -> AsyncIterator[TransportEvent]:
        while True:
            item = await self._queue.get()
            if item is _END_OF_STREAM:
                return
            yield item

    async def request_pairing(self) -> None:
        await self._request("request_pairing", {})

    # =========================================================================
    # Reader
    # =========================================================================

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch_frame(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.error("Gateway Socket Error", [
                        ("Error", str(ws.exception())[:100]),
                    ])
                    break
        finally:
            self._fail_pending(TransportClosed("Gateway connection lost"))
            if not self._close_sent:
                self._queue.put_nowait(ConnectionClosed(
                    reason=CloseReason.CONNECTION_LOST,
                    detail=f"socket closed ({ws.close_code})",
                ))
            self._queue.put_nowait(_END_OF_STREAM)

    def _dispatch_frame(self, raw: str) -> None:
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.warning("Gateway Frame Not JSON", [("Frame", raw[:80])])
            return
        if not isinstance(frame, dict):
            return

        if "id" in frame and "ok" in frame:
            future = self._pending.pop(frame["id"], None)
            if future is None or future.done():
                return
            if frame["ok"]:
                future.set_result(frame.get("result"))
            else:
                future.set_exception(TransportError(str(frame.get("error", "gateway error"))))
            return

        event = parse_event_frame(frame)
        if event is None:
            logger.debug("Gateway Frame Ignored", [("Type", str(frame.get("type")))])
            return
        if isinstance(event, ConnectionClosed):
            self._close_sent = True
        self._queue.put_nowait(event)

    def _fail_pending(self, error: Exception) -> None:
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

    # =========================================================================
    # Request / Response
    # =========================================================================

    async def _request(self, op: str, args: Dict[str, Any]) -> Any:
        if not self.connected:
            raise TransportClosed(f"Cannot run '{op}': transport is not connected")

        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            await self._ws.send_json({"id": request_id, "op": op, "args": args})
            return await asyncio.wait_for(future, timeout=self._request_timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Gateway op '{op}' timed out") from e
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise TransportClosed(f"Gateway op '{op}' failed: {e}") from e
        finally:
            self._pending.pop(request_id, None)

    # =========================================================================
    # Messaging
    # =========================================================================

    async def send_text(
        self,
        target: str,
        text: str,
        mentions: Optional[List[str]] = None,
        quoted_id: Optional[str] = None,
    ) -> None:
        args: Dict[str, Any] = {"to": target, "text": text}
        if mentions:
            args["mentions"] = list(mentions)
        if quoted_id:
            args["quoted"] = quoted_id
        await self._request("send_text", args)

    async def send_media(
        self,
        target: str,
        path: Path,
        kind: MediaKind,
        caption: Optional[str] = None,
        mimetype: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> None:
        media_id = await self._upload(Path(path), mimetype, filename)
        args: Dict[str, Any] = {"to": target, "mediaId": media_id, "kind": kind.value}
        if caption:
            args["caption"] = caption
        if mimetype:
            args["mimetype"] = mimetype
        if filename:
            args["filename"] = filename
        await self._request("send_media", args)

    async def _upload(self, path: Path, mimetype: Optional[str], filename: Optional[str]) -> str:
        if self._session is None or self._session.closed:
            raise TransportClosed("Cannot upload media: transport is not connected")

        form = aiohttp.FormData()
        form.add_field(
            "file",
            path.read_bytes(),
            filename=filename or path.name,
            content_type=mimetype or "application/octet-stream",
        )
        try:
            async with self._session.post(
                f"{self._http_url}/media",
                data=form,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self._request_timeout),
            ) as resp:
                if resp.status >= 400:
                    raise TransportError(f"Media upload rejected: HTTP {resp.status}")
                body = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Media upload failed: {e}") from e

        media_id = body.get("id") if isinstance(body, dict) else None
        if not media_id:
            raise TransportError("Media upload returned no id")
        return str(media_id)

    async def download_attachment(self, attachment: Attachment) -> AsyncIterator[bytes]:
        if self._session is None or self._session.closed:
            raise TransportClosed("Cannot download media: transport is not connected")

        try:
            async with self._session.get(
                f"{self._http_url}/media/{attachment.id}",
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self._request_timeout),
            ) as resp:
                if resp.status >= 400:
                    raise TransportError(f"Media download rejected: HTTP {resp.status}")
                async for chunk in resp.content.iter_chunked(MEDIA_CHUNK_SIZE):
                    yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Media download failed: {e}") from e

    # =========================================================================
    # Groups
    # =========================================================================

    async def get_roster(self, group_id: str) -> GroupRoster:
        result = await self._request("group_metadata", {"group": group_id})
        if not isinstance(result, dict):
            raise TransportError("Gateway returned no group metadata")
        return GroupRoster.from_payload(result)

    async def update_membership(
        self,
        group_id: str,
        users: List[str],
        action: MembershipAction,
    ) -> None:
        if action not in (MembershipAction.ADD, MembershipAction.REMOVE):
            raise ValueError(f"Membership action must be add or remove, not {action.value}")
        await self._request("group_participants_update", {
            "group": group_id,
            "participants": list(users),
            "action": action.value,
        })

    async def set_group_role(
        self,
        group_id: str,
        user: str,
        action: MembershipAction,
    ) -> None:
        if action not in (MembershipAction.PROMOTE, MembershipAction.DEMOTE):
            raise ValueError(f"Role action must be promote or demote, not {action.value}")
        await self._request("group_participants_update", {
            "group": group_id,
            "participants": [user],
            "action": action.value,
        })


__all__ = ["GatewayTransport", "parse_event_frame"]
