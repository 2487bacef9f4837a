"""
WaBot - Payment Relay Models
============================

Request and response bodies for the relay endpoints.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


# =============================================================================
# Requests
# =============================================================================

class InitializePaymentRequest(BaseModel):
    """
    Body of POST /payment/initialize.

    email and amount are optional here so a missing value produces the
    relay's own 400 body instead of a validation error.
    """

    email: Optional[str] = None
    amount: Optional[Union[float, str]] = None
    metadata: Optional[Dict[str, Any]] = None
    tournamentId: Optional[str] = None
    registrationId: Optional[str] = None


# =============================================================================
# Responses
# =============================================================================

class StatusMessage(BaseModel):
    """Relay-generated status body."""

    status: bool
    message: str


class RelayError(StatusMessage):
    """Upstream failure body."""

    status: bool = False
    error: str = Field(default="")


__all__ = ["InitializePaymentRequest", "StatusMessage", "RelayError"]
