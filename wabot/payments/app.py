"""
WaBot - Payment Relay Application
=================================

FastAPI application that relays payment initialisation and verification
to Paystack on behalf of a browser frontend.

DESIGN:
    Every relay route is mounted twice, at /api/... and at the bare path,
    so the same app serves both deployment layouts. Paystack answers are
    relayed verbatim with HTTP 200; only a transport or parse failure
    produces the relay's own 500 body.
"""

import math
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from wabot.core.errors import PaymentGatewayError
from wabot.core.logger import logger
from wabot.payments.config import PaymentConfig, get_payment_config
from wabot.payments.models import InitializePaymentRequest, RelayError, StatusMessage
from wabot.payments.paystack import PaystackClient


EXPLICIT_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content=StatusMessage(status=False, message=message).model_dump())


def _relay_failure(message: str, error: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content=RelayError(message=message, error=str(error)).model_dump())


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_minor_units(amount: float) -> int:
    """Major currency units to Paystack's minor units (pesewas, kobo, cents)."""
    return math.floor(float(amount) * 100)


def build_callback_url(frontend_url: str, tournament_id: Optional[str], registration_id: Optional[str]) -> str:
    query = urlencode({
        "tournamentId": tournament_id or "",
        "registrationId": registration_id or "",
    })
    return f"{frontend_url}/payment-callback.html?{query}"


# =============================================================================
# Relay Routes
# =============================================================================

router = APIRouter(tags=["Payments"])


@router.post("/payment/initialize")
async def initialize_payment(body: InitializePaymentRequest, request: Request) -> JSONResponse:
    """Start a Paystack transaction and relay Paystack's answer."""
    config: PaymentConfig = request.app.state.config
    client: PaystackClient = request.app.state.paystack

    if not body.email or not body.amount:
        return _bad_request("Email and amount are required")
    try:
        minor_amount = to_minor_units(body.amount)
    except (TypeError, ValueError):
        return _bad_request("Amount must be a number")
    if minor_amount <= 0:
        return _bad_request("Amount must be greater than zero")

    payload = {
        "email": body.email,
        "amount": minor_amount,
        "currency": config.currency,
        "metadata": body.metadata or {},
        "callback_url": build_callback_url(config.frontend_url, body.tournamentId, body.registrationId),
    }

    logger.tree("Payment Initialize", [
        ("Email", body.email),
        ("Amount", f"{minor_amount} minor units ({body.amount} {config.currency})"),
        ("Tournament", body.tournamentId or "-"),
        ("Registration", body.registrationId or "-"),
    ], emoji="💳")

    try:
        response = await client.initialize_transaction(payload)
    except PaymentGatewayError as e:
        logger.error("Payment Initialize Failed", [
            ("Email", body.email),
            ("Error", str(e)[:100]),
        ])
        return _relay_failure("Failed to initialize payment", e)

    return JSONResponse(status_code=200, content=response)


@router.get("/payment/verify")
async def verify_payment(request: Request, reference: Optional[str] = None) -> JSONResponse:
    """Verify a transaction by reference and relay Paystack's answer."""
    client: PaystackClient = request.app.state.paystack
    config: PaymentConfig = request.app.state.config

    if not reference:
        return _bad_request("Payment reference is required")

    try:
        response = await client.verify_transaction(reference)
    except PaymentGatewayError as e:
        logger.error("Payment Verify Failed", [
            ("Reference", reference[:50]),
            ("Error", str(e)[:100]),
        ])
        return _relay_failure("Failed to verify payment", e)

    data = response.get("data") if isinstance(response, dict) else None
    data = data if isinstance(data, dict) else {}
    amount = data.get("amount")
    logger.tree("Payment Verified", [
        ("Reference", str(data.get("reference") or reference)[:50]),
        ("Upstream Status", str(response.get("status") if isinstance(response, dict) else "-")),
        ("Payment Status", str(data.get("status") or "-")),
        ("Amount", f"{amount / 100:g} {config.currency}" if isinstance(amount, (int, float)) else "N/A"),
    ], emoji="🧾")

    return JSONResponse(status_code=200, content=response, headers=EXPLICIT_CORS_HEADERS)


@router.get("/check-connection")
async def check_connection(request: Request) -> JSONResponse:
    config: PaymentConfig = request.app.state.config
    return JSONResponse(
        status_code=200,
        content={
            "status": True,
            "message": "Server is connected to the frontend",
            "frontend": config.frontend_url,
            "timestamp": _now_iso(),
        },
        headers={"Access-Control-Allow-Origin": "*", "Access-Control-Allow-Methods": "GET, OPTIONS"},
    )


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "message": "Server is running", "timestamp": _now_iso()}


# =============================================================================
# Application Factory
# =============================================================================

def create_app(config: Optional[PaymentConfig] = None, client: Optional[PaystackClient] = None) -> FastAPI:
    """
    Create and configure the relay application.

    Args:
        config: Relay configuration; loaded from the environment when omitted.
        client: Paystack client; built from config when omitted.
    """
    config = config or get_payment_config()
    paystack = client or PaystackClient(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.tree("Payment Relay Starting", [
            ("Host", config.host),
            ("Port", str(config.port)),
            ("Currency", config.currency),
            ("Frontend", config.frontend_url),
            ("Secret Key", "set" if config.secret_key else "MISSING"),
        ], emoji="🚀")
        yield
        await paystack.close()
        logger.tree("Payment Relay Stopping", [], emoji="🛑")

    app = FastAPI(title="WaBot Payment Relay", version="1.0.0", lifespan=lifespan)
    app.state.config = config
    app.state.paystack = paystack

    # ==========================================================================
    # Middleware
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.debug("Relay Request", [
            ("Method", request.method),
            ("Path", str(request.url.path)[:50]),
            ("Status", str(response.status_code)),
            ("Duration", f"{(time.perf_counter() - start) * 1000:.0f}ms"),
        ])
        return response

    # ==========================================================================
    # Exception Handlers
    # ==========================================================================

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled Relay Error", [
            ("Path", str(request.url.path)[:50]),
            ("Method", request.method),
            ("Error Type", type(exc).__name__),
            ("Error", str(exc)[:100]),
        ])
        return JSONResponse(status_code=500, content={"status": False, "message": "Internal server error"})

    # ==========================================================================
    # Routes
    # ==========================================================================

    @app.get("/")
    async def root() -> dict:
        return {"status": True, "message": f"Payment API server is running. Frontend is at {config.frontend_url}"}

    @app.get("/test", response_class=PlainTextResponse)
    async def test() -> str:
        return "Server is working!"

    app.include_router(router, prefix="/api")
    app.include_router(router)

    return app


__all__ = ["create_app", "to_minor_units", "build_callback_url"]
