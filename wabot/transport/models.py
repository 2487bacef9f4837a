"""
WaBot - Transport Data Types
============================

Events and records exchanged between the bot core and a chat transport.

DESIGN:
    The gateway speaks loose JSON; everything the core sees is one of the
    dataclasses below. from_payload() classmethods do the adaptation and
    ignore keys they do not know, so newer gateway builds stay compatible.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from wabot.utils.jid import jid_to_number, is_group_jid


# =============================================================================
# Enums
# =============================================================================

class MediaKind(str, Enum):
    """Kinds of media attachment the gateway can stream."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    STICKER = "sticker"

    @classmethod
    def parse(cls, value: Any) -> Optional["MediaKind"]:
        """Map a gateway kind string to MediaKind; None for anything else."""
        if isinstance(value, str):
            value = value.lower().replace("message", "").strip()
            for kind in cls:
                if kind.value == value:
                    return kind
        return None


class CloseReason(str, Enum):
    """Why the transport session ended."""

    LOGGED_OUT = "logged_out"
    CONNECTION_LOST = "connection_lost"
    RESTART_REQUIRED = "restart_required"
    REPLACED = "replaced"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "CloseReason":
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            if normalized in ("loggedout", "logged_out"):
                return cls.LOGGED_OUT
            for reason in cls:
                if reason.value == normalized:
                    return reason
        return cls.OTHER


class MembershipAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    PROMOTE = "promote"
    DEMOTE = "demote"


# =============================================================================
# Messages
# =============================================================================

@dataclass
class Attachment:
    """A media attachment the transport can stream on request."""

    id: str
    kind: MediaKind
    mimetype: str = "application/octet-stream"
    filename: Optional[str] = None
    caption: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> Optional["Attachment"]:
        if not data or not data.get("id"):
            return None
        kind = MediaKind.parse(data.get("kind"))
        if kind is None:
            return None
        return cls(
            id=str(data["id"]),
            kind=kind,
            mimetype=str(data.get("mimetype") or "application/octet-stream"),
            filename=data.get("filename"),
            caption=data.get("caption"),
        )


@dataclass
class QuotedMessage:
    """The message an inbound message replies to."""

    id: str
    sender: str = ""
    text: str = ""
    attachment: Optional[Attachment] = None

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> Optional["QuotedMessage"]:
        if not data or not data.get("id"):
            return None
        return cls(
            id=str(data["id"]),
            sender=str(data.get("sender") or ""),
            text=str(data.get("text") or ""),
            attachment=Attachment.from_payload(data.get("attachment")),
        )


@dataclass
class InboundMessage:
    """
    A chat message delivered by the transport.

    Attributes:
        id: Transport message id.
        chat_id: JID of the chat (group JID or the sender's JID).
        sender: JID of the author.
        text: Text body or media caption ("" when there is none).
        mentions: JIDs mentioned in the message.
        attachment: Media carried by the message itself.
        quoted: The message this one replies to, if any.
    """

    id: str
    chat_id: str
    sender: str
    text: str = ""
    mentions: List[str] = field(default_factory=list)
    attachment: Optional[Attachment] = None
    quoted: Optional[QuotedMessage] = None
    from_me: bool = False
    push_name: str = ""
    timestamp: int = 0

    @property
    def is_group(self) -> bool:
        return is_group_jid(self.chat_id)

    @property
    def sender_number(self) -> str:
        return jid_to_number(self.sender)

    @property
    def group_id(self) -> Optional[str]:
        return self.chat_id if self.is_group else None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "InboundMessage":
        chat_id = str(data.get("chat") or "")
        return cls(
            id=str(data.get("id") or ""),
            chat_id=chat_id,
            sender=str(data.get("sender") or chat_id),
            text=str(data.get("text") or ""),
            mentions=[str(m) for m in data.get("mentions") or []],
            attachment=Attachment.from_payload(data.get("attachment")),
            quoted=QuotedMessage.from_payload(data.get("quoted")),
            from_me=bool(data.get("fromMe", False)),
            push_name=str(data.get("pushName") or ""),
            timestamp=int(data.get("timestamp") or 0),
        )


# =============================================================================
# Groups
# =============================================================================

@dataclass
class Participant:
    jid: str
    is_admin: bool = False
    is_super_admin: bool = False

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Participant":
        role = data.get("admin")
        return cls(
            jid=str(data.get("id") or ""),
            is_admin=role in ("admin", "superadmin"),
            is_super_admin=role == "superadmin",
        )


@dataclass
class GroupRoster:
    """Group metadata and participant list."""

    id: str
    subject: str = ""
    owner: Optional[str] = None
    creation: int = 0
    description: str = ""
    participants: List[Participant] = field(default_factory=list)

    def is_admin(self, jid: str) -> bool:
        number = jid_to_number(jid)
        return any(
            p.is_admin and jid_to_number(p.jid) == number for p in self.participants
        )

    @property
    def admins(self) -> List[Participant]:
        return [p for p in self.participants if p.is_admin]

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "GroupRoster":
        return cls(
            id=str(data.get("id") or ""),
            subject=str(data.get("subject") or ""),
            owner=data.get("owner") or None,
            creation=int(data.get("creation") or 0),
            description=str(data.get("desc") or ""),
            participants=[Participant.from_payload(p) for p in data.get("participants") or []],
        )


@dataclass
class MembershipEvent:
    """Participants joined, left, or changed role in a group."""

    group_id: str
    participants: List[str]
    action: MembershipAction

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> Optional["MembershipEvent"]:
        try:
            action = MembershipAction(str(data.get("action")))
        except ValueError:
            return None
        return cls(
            group_id=str(data.get("group") or ""),
            participants=[str(p) for p in data.get("participants") or []],
            action=action,
        )


# =============================================================================
# Connection Lifecycle
# =============================================================================

@dataclass
class PairingEvent:
    """A QR string or pairing code to present to the account owner."""

    payload: str
    kind: str = "qr"


@dataclass
class ConnectionOpened:
    account: str = ""


@dataclass
class ConnectionClosed:
    reason: CloseReason = CloseReason.OTHER
    detail: str = ""


TransportEvent = Union[
    InboundMessage,
    MembershipEvent,
    PairingEvent,
    ConnectionOpened,
    ConnectionClosed,
]


__all__ = [
    "MediaKind",
    "CloseReason",
    "MembershipAction",
    "Attachment",
    "QuotedMessage",
    "InboundMessage",
    "Participant",
    "GroupRoster",
    "MembershipEvent",
    "PairingEvent",
    "ConnectionOpened",
    "ConnectionClosed",
    "TransportEvent",
]
