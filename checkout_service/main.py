"""
main.py — FastAPI Entry Point for the Checkout Service

This module provides the REST API used by the storefront's checkout, order and
admin pages. It prices carts, opens Razorpay orders, verifies payment
signatures, proxies shipment tracking and sends newsletters.

Responsibilities:
    • Create payment orders from server-side priced carts
    • Verify Razorpay payment signatures
    • Relay Shiprocket tracking data and send newsletters through Resend
    • Translate service errors into uniform JSON envelopes
    • Provide system health information
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Path, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .clients import RazorpayClient, ResendClient, ShiprocketClient
from .config import Settings, get_settings
from .errors import (
    CheckoutServiceError,
    EmailDeliveryError,
    GatewayNotConfigured,
    ServiceNotConfigured,
    from_pydantic_errors,
)
from .logging_config import get_logger, setup_logging
from .models import (
    CreateOrderRequest,
    CreateOrderResponse,
    NewsletterRequest,
    NewsletterResult,
    TrackingInfo,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from .verification import VerificationResult, verify_payment_signature
from .workflow import create_payment_order, send_newsletter

VERIFY_PAYMENT_PATH = "/api/verify-payment"

# Initialization
# Configure logging and initialize FastAPI app
setup_logging(get_settings().log_file)
log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Creates one shared HTTP client per external integration and closes them on shutdown.

    Clients are created even when credentials are missing; each endpoint
    checks its configuration before using them.
    """
    settings = get_settings()
    log.info("Checkout service starting...")
    app.state.payment_gateway = RazorpayClient(
        settings.razorpay_key_id,
        settings.razorpay_key_secret,
        base_url=settings.razorpay_api_url,
        timeout=settings.http_timeout,
    )
    app.state.courier = ShiprocketClient(
        settings.shiprocket_email,
        settings.shiprocket_password,
        base_url=settings.shiprocket_api_url,
        token_ttl=settings.shiprocket_token_ttl,
        timeout=settings.http_timeout,
    )
    app.state.mailer = ResendClient(
        settings.resend_api_key,
        base_url=settings.resend_api_url,
        timeout=settings.http_timeout,
    )
    if not settings.payment_gateway_configured:
        log.warning("Razorpay credentials missing: payment endpoints will answer 500.")

    yield

    for client in (app.state.payment_gateway, app.state.courier, app.state.mailer):
        await client.aclose()
    log.info("Checkout service stopped.")


app = FastAPI(title="Storefront Checkout API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def get_payment_gateway(request: Request) -> RazorpayClient:
    return request.app.state.payment_gateway


def get_courier(request: Request) -> ShiprocketClient:
    return request.app.state.courier


def get_mailer(request: Request) -> ResendClient:
    return request.app.state.mailer


# Error envelopes
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Reports the first invalid field as 400 instead of FastAPI's default 422."""
    error = from_pydantic_errors(exc.errors())
    log.info(f"Rejected {request.method} {request.url.path}: {error.message}")
    if request.url.path == VERIFY_PAYMENT_PATH:
        return JSONResponse(status_code=400, content={"status": "failure", "message": error.message})
    return JSONResponse(status_code=400, content={"error": error.message})


@app.exception_handler(CheckoutServiceError)
async def service_error_handler(request: Request, exc: CheckoutServiceError):
    if exc.status_code < 500:
        log.info(f"Rejected {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# API Endpoint: Checkout → Payment order
@app.post("/api/create-order", response_model=CreateOrderResponse)
async def create_order(
        order: CreateOrderRequest,
        settings: Settings = Depends(get_settings),
        gateway: RazorpayClient = Depends(get_payment_gateway)
):
    """
    Prices the submitted cart and opens a Razorpay order for the total.

    Returns:
        CreateOrderResponse: order_id, amount (paise), currency,
        calculatedTotal and the pricing breakdown.

    Raises:
        CartValidationError (400): Invalid cart or cart total.
        GatewayNotConfigured (500): Razorpay credentials missing.
        GatewayError (500): Razorpay rejected the order or was unreachable.
    """
    if not settings.payment_gateway_configured:
        raise GatewayNotConfigured()
    currency = (order.currency or settings.default_currency).upper()
    return await create_payment_order(order.cartItems, order.shippingState, currency, gateway)


# API Endpoint: Checkout → Payment confirmation
@app.post(VERIFY_PAYMENT_PATH, response_model=VerifyPaymentResponse)
async def verify_payment(
        payment: VerifyPaymentRequest,
        settings: Settings = Depends(get_settings)
):
    """
    Verifies the signature Razorpay issued for a completed payment.

    Both missing fields and a wrong signature answer 400 with
    status "failure"; only the message differs. Marking the order as paid is
    left to the caller.
    """
    if not settings.payment_gateway_configured:
        raise GatewayNotConfigured()

    result = verify_payment_signature(
        payment.razorpay_order_id,
        payment.razorpay_payment_id,
        payment.razorpay_signature,
        settings.razorpay_key_secret,
    )
    log_prefix = f"[Order: {payment.razorpay_order_id}]"

    if result.ok:
        log.info(f"{log_prefix} Payment {payment.razorpay_payment_id} verified.")
        return {"status": "success", "message": "Payment verified successfully"}

    if result is VerificationResult.MISSING_FIELDS:
        log.warning(f"{log_prefix} Verification request with missing fields.")
        message = "Missing required fields"
    else:
        log.warning(f"{log_prefix} Signature mismatch for payment {payment.razorpay_payment_id}.")
        message = "Invalid payment signature"
    return JSONResponse(status_code=400, content={"status": "failure", "message": message})


# API Endpoint: Order popup → Shipment tracking
@app.get("/api/track-shipment/{awb_code}", response_model=TrackingInfo)
async def track_shipment(
        awb_code: str = Path(..., pattern=r"^[A-Za-z0-9-]{1,40}$"),
        settings: Settings = Depends(get_settings),
        courier: ShiprocketClient = Depends(get_courier)
):
    if not settings.courier_configured:
        raise ServiceNotConfigured("Shipment tracking is not configured")
    return await courier.track(awb_code)


# API Endpoint: Admin → Newsletter
@app.post("/api/send-newsletter", response_model=NewsletterResult)
async def newsletter(
        request_body: NewsletterRequest,
        settings: Settings = Depends(get_settings),
        mailer: ResendClient = Depends(get_mailer)
):
    """
    Sends the newsletter to each recipient.

    Partial failures are reported in the result; the request fails (502)
    only when no email could be delivered.
    """
    if not settings.mailer_configured:
        raise ServiceNotConfigured("Email service is not configured")
    result = await send_newsletter(request_body, mailer, settings.newsletter_from)
    if result.sent == 0:
        raise EmailDeliveryError(f"Failed to send newsletter to {result.failed} recipient(s)")
    return result


# Health Check Endpoint
@app.get("/api/health")
def health_check():
    """
    Simple health check endpoint for monitoring systems and container orchestrators.
    """
    return {"status": "ok", "message": "Checkout API server is running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().api_port)
