import httpx
import pytest
from fastapi.testclient import TestClient

from checkout_service.clients import RazorpayClient, ResendClient, ShiprocketClient
from checkout_service.config import Settings, get_settings
from checkout_service.main import app as fastapi_app, get_courier, get_mailer, get_payment_gateway
from mock_services import mock_razorpay, mock_resend, mock_shiprocket

TEST_SECRET = "shh"


# Markers from the directory
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret=TEST_SECRET,
        shiprocket_email="ops@example.com",
        shiprocket_password="secret",
        resend_api_key=mock_resend.API_KEY,
        newsletter_from="Store <news@example.com>",
    )


class FakeGateway:
    """Records create_order calls instead of talking to Razorpay."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    async def create_order(self, amount, currency, receipt, notes):
        self.calls.append({"amount": amount, "currency": currency, "receipt": receipt, "notes": notes})
        if self.error is not None:
            raise self.error
        return {"id": "order_test123", "amount": amount, "currency": currency, "receipt": receipt}


@pytest.fixture
def fake_gateway():
    return FakeGateway()


def _asgi_client(app, base_url):
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=base_url)


@pytest.fixture
def razorpay_client():
    return RazorpayClient("rzp_test_key", TEST_SECRET, client=_asgi_client(mock_razorpay.app, "http://razorpay.test"))


@pytest.fixture
def shiprocket_client():
    mock_shiprocket.reset()
    return ShiprocketClient(
        "ops@example.com", "secret", client=_asgi_client(mock_shiprocket.app, "http://shiprocket.test")
    )


@pytest.fixture
def resend_client():
    mock_resend.OUTBOX.clear()
    return ResendClient(mock_resend.API_KEY, client=_asgi_client(mock_resend.app, "http://resend.test"))


@pytest.fixture
def app():
    return fastapi_app


@pytest.fixture
def client(app, settings, fake_gateway, shiprocket_client, resend_client):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_courier] = lambda: shiprocket_client
    app.dependency_overrides[get_mailer] = lambda: resend_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
