"""
workflow.py — Orchestration Logic for Checkout Operations

This module coordinates pricing and the external services in the correct sequence.

Workflow Overview (order creation):
1. Validate and price the cart server-side (no I/O)
2. Open a Razorpay order for the computed amount (single attempt)
3. Relay the gateway order together with the pricing breakdown

Also contains the newsletter fan-out, which sends one email per recipient
and tolerates individual delivery failures.
"""

import html
import time
import uuid
from typing import Any, Iterable, Optional

from .clients import RazorpayClient, ResendClient
from .errors import EmailDeliveryError, GatewayError
from .logging_config import get_logger
from .models import CreateOrderResponse, NewsletterRequest, NewsletterResult, PriceBreakdown
from .pricing import price_cart

log = get_logger(__name__)


def new_receipt() -> str:
    """Timestamp-derived merchant receipt with a random suffix, e.g. 'receipt_1760850000123_3f9a1c'."""
    return f"receipt_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


async def create_payment_order(
        cart_items: Iterable[Any],
        shipping_state: Optional[str],
        currency: str,
        gateway: RazorpayClient
) -> CreateOrderResponse:
    """
    Prices a cart and opens the matching payment order with the gateway.

    The charged amount is always derived from the validated cart; any total the
    client may have computed is never consulted.

    Args:
        cart_items: Cart lines (CartItem models or raw dicts).
        shipping_state (Optional[str]): Shipping state, None if not yet known.
        currency (str): ISO currency code for the gateway order.
        gateway (RazorpayClient): Payment gateway client.

    Returns:
        CreateOrderResponse: Gateway order id/amount/currency plus the breakdown.

    Raises:
        CartValidationError: If the cart is invalid (raised before any gateway call).
        GatewayError: If the gateway call fails.
    """
    priced = price_cart(cart_items, shipping_state)
    receipt = new_receipt()
    log_prefix = f"[Order: {receipt}]"

    log.info(
        f"{log_prefix} Cart priced: {priced.item_count} item(s), subtotal={priced.subtotal:.2f}, "
        f"shipping={priced.shipping_cost:.2f}, tax={priced.tax:.2f}, total={priced.total:.2f} {currency}."
    )

    try:
        order = await gateway.create_order(
            amount=priced.amount_minor,
            currency=currency,
            receipt=receipt,
            notes=priced.audit_notes(),
        )
    except GatewayError as e:
        log.error(f"{log_prefix} Razorpay order creation failed: {e.message}")
        raise

    log.info(f"{log_prefix} Razorpay order {order['id']} created for {priced.amount_minor} minor units.")

    return CreateOrderResponse(
        order_id=order["id"],
        amount=order.get("amount", priced.amount_minor),
        currency=order.get("currency", currency),
        calculatedTotal=priced.total,
        breakdown=PriceBreakdown(**priced.breakdown()),
    )


def render_newsletter_html(message: str) -> str:
    """Escapes a plain-text message and keeps its line breaks."""
    escaped = html.escape(message)
    return "<div>" + escaped.replace("\r\n", "\n").replace("\n", "<br>") + "</div>"


async def send_newsletter(
        request: NewsletterRequest,
        mailer: ResendClient,
        sender: str
) -> NewsletterResult:
    """
    Sends the newsletter to every recipient, one email each.

    A failed delivery is counted and logged; it does not stop the batch.

    Returns:
        NewsletterResult: Number of sent and failed deliveries.
    """
    body = render_newsletter_html(request.message)
    sent = 0
    failed = 0

    for recipient in request.recipients:
        try:
            await mailer.send_email(sender=sender, to=recipient, subject=request.subject, html=body)
            sent += 1
        except EmailDeliveryError as e:
            failed += 1
            log.warning(f"[Newsletter] Delivery to {recipient} failed: {e.message}")

    log.info(f"[Newsletter] '{request.subject}' sent to {sent} recipient(s), {failed} failed.")
    return NewsletterResult(sent=sent, failed=failed)
