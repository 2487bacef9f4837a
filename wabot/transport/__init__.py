"""
WaBot - Transport Package
=========================

Transport interface, event types and the gateway sidecar adapter.
"""

from wabot.transport.base import Transport
from wabot.transport.gateway import GatewayTransport
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
    Participant,
    QuotedMessage,
    TransportEvent,
)

__all__ = [
    "Transport",
    "GatewayTransport",
    "Attachment",
    "CloseReason",
    "ConnectionClosed",
    "ConnectionOpened",
    "GroupRoster",
    "InboundMessage",
    "MediaKind",
    "MembershipAction",
    "MembershipEvent",
    "PairingEvent",
    "Participant",
    "QuotedMessage",
    "TransportEvent",
]
