"""
WaBot - Paystack Client
=======================

Minimal async client for the two Paystack transaction endpoints the
relay forwards to.

DESIGN:
    Paystack's JSON body is returned as-is, whatever its HTTP status, so
    the relay can pass it through verbatim. Only network failures and
    non-JSON bodies raise PaymentGatewayError.
"""

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp

from wabot.core.errors import PaymentGatewayError
from wabot.core.logger import logger
from wabot.payments.config import PaymentConfig


class PaystackClient:
    """
    Paystack REST client.

    Args:
        config: Relay configuration (secret key, base URL, timeout).
        session: Externally owned session (tests).
    """

    def __init__(self, config: PaymentConfig, session: Optional[aiohttp.ClientSession] = None) -> None:
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=config.timeout)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        session = await self._get_session()
        headers = {
            "Authorization": f"Bearer {self.config.secret_key}",
            "Content-Type": "application/json",
        }
        url = f"{self.config.base_url}{path}"
        try:
            async with session.request(method, url, json=payload, headers=headers) as resp:
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise PaymentGatewayError(f"Failed to parse Paystack response: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Paystack Request Failed", [
                ("Method", method),
                ("Path", path),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            raise PaymentGatewayError(f"Paystack request failed: {e}") from e

    # =========================================================================
    # Transactions
    # =========================================================================

    async def initialize_transaction(self, payload: Dict[str, Any]) -> Any:
        """POST /transaction/initialize"""
        return await self._request("POST", "/transaction/initialize", payload)

    async def verify_transaction(self, reference: str) -> Any:
        """GET /transaction/verify/<reference>"""
        return await self._request("GET", f"/transaction/verify/{quote(reference, safe='')}")


__all__ = ["PaystackClient"]
