import httpx
import pytest

from checkout_service.clients import ResendClient
from checkout_service.errors import CartValidationError, EmailDeliveryError, GatewayError
from checkout_service.models import NewsletterRequest
from checkout_service.workflow import create_payment_order, new_receipt, render_newsletter_html, send_newsletter

pytestmark = pytest.mark.anyio

CART = [{"productId": "p1", "price": 500, "quantity": 2}]


async def test_create_payment_order_charges_server_side_total(fake_gateway):
    response = await create_payment_order(CART, "Tamil Nadu", "INR", fake_gateway)

    assert len(fake_gateway.calls) == 1
    call = fake_gateway.calls[0]
    assert call["amount"] == 117000
    assert call["currency"] == "INR"
    assert call["receipt"].startswith("receipt_")
    assert call["notes"] == {
        "subtotal": "1000.00",
        "shipping": "70.00",
        "tax": "100.00",
        "total": "1170.00",
        "itemCount": 1,
    }

    assert response.order_id == "order_test123"
    assert response.amount == 117000
    assert response.calculatedTotal == 1170
    assert response.breakdown.shippingCost == 70


async def test_create_payment_order_against_mock_gateway(razorpay_client):
    response = await create_payment_order(CART, "Kerala", "INR", razorpay_client)
    assert response.order_id.startswith("order_")
    assert response.amount == 120000
    assert response.breakdown.total == 1200


async def test_invalid_cart_never_reaches_gateway(fake_gateway):
    with pytest.raises(CartValidationError):
        await create_payment_order([{"productId": "p1", "price": 0, "quantity": 1}], None, "INR", fake_gateway)
    assert fake_gateway.calls == []


async def test_gateway_error_propagates(fake_gateway):
    fake_gateway.error = GatewayError("Authentication failed", 401)
    with pytest.raises(GatewayError) as exc:
        await create_payment_order(CART, None, "INR", fake_gateway)
    assert exc.value.message == "Authentication failed"
    assert len(fake_gateway.calls) == 1


def test_receipt_is_timestamp_derived_with_random_suffix():
    receipt = new_receipt()
    prefix, millis, suffix = receipt.split("_")
    assert prefix == "receipt"
    assert millis.isdigit()
    assert len(suffix) == 6
    assert set(suffix) <= set("0123456789abcdef")
    assert len(receipt) <= 40


def test_receipts_in_the_same_millisecond_differ(monkeypatch):
    monkeypatch.setattr("checkout_service.workflow.time.time", lambda: 1760850000.123)
    assert new_receipt() != new_receipt()


def test_render_newsletter_html_escapes_and_keeps_lines():
    html = render_newsletter_html("New <b>serum</b> drop!\nSee you soon & stay glowing")
    assert "&lt;b&gt;serum&lt;/b&gt;" in html
    assert "<br>" in html
    assert "&amp;" in html


class _FlakyMailer:
    def __init__(self, failing):
        self.failing = set(failing)
        self.sent = []

    async def send_email(self, sender, to, subject, html):
        if to in self.failing:
            raise EmailDeliveryError("rejected")
        self.sent.append(to)
        return "id"


async def test_send_newsletter_counts_partial_failures():
    mailer = _FlakyMailer(failing=["b@example.com"])
    request = NewsletterRequest(
        recipients=["a@example.com", "b@example.com", "c@example.com", "a@example.com"],
        subject="Glow",
        message="Hello",
    )
    result = await send_newsletter(request, mailer, "news@example.com")

    assert result.sent == 2
    assert result.failed == 1
    assert mailer.sent == ["a@example.com", "c@example.com"]


async def test_send_newsletter_survives_unusable_mailer_response():
    def handler(request):
        if b"b@example.com" in request.read():
            return httpx.Response(200, text="<html>upstream error</html>")
        return httpx.Response(200, json={"id": "email_1"})

    mailer = ResendClient(
        "re_key", client=httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://resend.test")
    )
    request = NewsletterRequest(
        recipients=["a@example.com", "b@example.com", "c@example.com"],
        subject="Glow",
        message="Hello",
    )
    result = await send_newsletter(request, mailer, "news@example.com")

    assert result.sent == 2
    assert result.failed == 1
