"""
WaBot - Error Types
===================

Exception hierarchy shared by the bot core, the transport adapter and the
payment relay.

DESIGN:
    Handlers catch collaborator errors (transport, content APIs, media) at
    their own boundary and answer with a one-line reply. Anything that is
    not a WaBotError reaching the router is logged as an unexpected failure.
"""


class WaBotError(Exception):
    """Base class for all WaBot errors."""


class ConfigValidationError(WaBotError):
    """Raised when required configuration is missing or invalid."""


class StateStoreError(WaBotError):
    """Raised when the state document cannot be written."""


class TransportError(WaBotError):
    """Raised when the chat transport rejects or fails an operation."""


class TransportClosed(TransportError):
    """Raised when an operation is attempted on a closed transport."""


class ContentError(WaBotError):
    """Raised when a third-party content API call fails."""


class ContentNotConfigured(ContentError):
    """Raised when a content API needs a key that is not configured."""


class PaymentGatewayError(WaBotError):
    """Raised when the payment gateway cannot be reached or answers garbage."""


class CalculationError(WaBotError):
    """Raised when an expression is outside the supported arithmetic grammar."""


__all__ = [
    "WaBotError",
    "ConfigValidationError",
    "StateStoreError",
    "TransportError",
    "TransportClosed",
    "ContentError",
    "ContentNotConfigured",
    "PaymentGatewayError",
    "CalculationError",
]
