"""
This module provides communication clients for the external systems used by the checkout service:
- Payment gateway (Razorpay REST API)
- Courier (Shiprocket REST API), including its short-lived auth token cache
- Email delivery (Resend REST API)
Each class encapsulates its protocol logic, error handling, and connection management.
All clients are asynchronous (httpx.AsyncClient) and translate transport and HTTP
failures into the service's own exception types.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import httpx

from .errors import CourierError, EmailDeliveryError, GatewayError, TrackingNotFound
from .logging_config import get_logger
from .models import TrackingActivity, TrackingInfo

log = get_logger(__name__)


def _build_client(base_url: str, timeout: float) -> httpx.AsyncClient:
    timeout_config = httpx.Timeout(timeout, connect=5.0)
    return httpx.AsyncClient(base_url=base_url, timeout=timeout_config)


def _error_message(response: httpx.Response, default: str) -> str:
    """
    Extracts the provider's error text from an error response.

    Razorpay nests it as {"error": {"description": ...}}, Shiprocket and
    Resend return a top-level "message".
    """
    try:
        body = response.json()
    except ValueError:
        return response.text or default
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("description"):
            return str(error["description"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
    return default


def _json_body(response: httpx.Response, required_key: Optional[str] = None) -> Optional[dict]:
    """
    Parses a successful response body.

    Returns None when the body is not a JSON object or lacks a truthy
    required_key, so the caller can raise its own error type.
    """
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    if required_key is not None and not body.get(required_key):
        return None
    return body


# --- Payment Gateway Client (Razorpay REST) ---
class RazorpayClient:
    """
    Client for the Razorpay Orders API.
    Opens payment orders (payment intents) that the storefront checkout then pays against.
    """
    def __init__(
            self,
            key_id: str,
            key_secret: str,
            base_url: str = "https://api.razorpay.com",
            timeout: float = 10.0,
            client: Optional[httpx.AsyncClient] = None
    ):
        """
        Args:
            key_id (str): Razorpay key id (basic-auth user).
            key_secret (str): Razorpay key secret (basic-auth password).
            base_url (str): API root, overridable for the mock gateway.
            timeout (float): Read timeout in seconds.
            client (Optional[httpx.AsyncClient]): Pre-built HTTP client (tests, mocks).
        """
        self.auth = httpx.BasicAuth(key_id, key_secret)
        self.client = client or _build_client(base_url, timeout)

    async def aclose(self):
        """Closes the HTTP client session."""
        await self.client.aclose()

    async def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> dict:
        """
        Creates a new order via the Razorpay REST API. Single attempt, no retry.
        Args:
            amount (int): Amount in minor units (paise).
            currency (str): ISO currency code (e.g. 'INR').
            receipt (str): Merchant receipt identifier.
            notes (dict): Audit metadata stored with the order.
        Returns:
            dict: The gateway order (id, amount, currency, receipt, status, ...).
        Raises:
            GatewayError: If the gateway times out, is unreachable, or rejects the request.
        """
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
            "notes": notes,
        }

        try:
            response = await self.client.post("/v1/orders", json=payload, auth=self.auth)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            log.error(f"[Receipt: {receipt}] Razorpay timeout. Order state unknown.")
            raise GatewayError("Payment gateway timed out") from e
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response, "Failed to create order")
            log.error(f"[Receipt: {receipt}] Razorpay rejected order (HTTP {e.response.status_code}): {message}")
            raise GatewayError(message, e.response.status_code) from e
        except httpx.RequestError as e:
            log.error(f"[Receipt: {receipt}] Razorpay unreachable: {e}")
            raise GatewayError(f"Payment gateway unreachable: {e}") from e

        order = _json_body(response, "id")
        if order is None:
            log.error(f"[Receipt: {receipt}] Razorpay answered HTTP {response.status_code} without an order id.")
            raise GatewayError("Payment gateway returned an invalid order", response.status_code)
        return order


# --- Courier token cache ---
class CourierTokenCache:
    """
    Owns the courier API token and its expiry.

    Concurrent callers that find the token missing or expired share a single
    refresh: the first one logs in while holding the lock, the others wait and
    then reuse the fresh token.
    """
    def __init__(
            self,
            login: Callable[[], Awaitable[str]],
            ttl: float,
            clock: Callable[[], float] = time.monotonic
    ):
        self._login = login
        self._ttl = ttl
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    def _is_valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at

    async def get_token(self) -> str:
        if self._is_valid():
            return self._token
        async with self._lock:
            # Refreshed by another caller while we waited
            if self._is_valid():
                return self._token
            token = await self._login()
            self._token = token
            self._expires_at = self._clock() + self._ttl
            return token

    def invalidate(self):
        self._token = None
        self._expires_at = 0.0


# --- Courier Client (Shiprocket REST) ---
class ShiprocketClient:
    """
    Client for the Shiprocket tracking API.
    Logs in with email/password to obtain a bearer token and tracks shipments by AWB code.
    """
    def __init__(
            self,
            email: str,
            password: str,
            base_url: str = "https://apiv2.shiprocket.in",
            token_ttl: float = 9 * 24 * 3600,
            timeout: float = 10.0,
            client: Optional[httpx.AsyncClient] = None
    ):
        self.email = email
        self.password = password
        self.client = client or _build_client(base_url, timeout)
        self.tokens = CourierTokenCache(self._login, token_ttl)

    async def aclose(self):
        await self.client.aclose()

    async def _login(self) -> str:
        """
        Requests a new API token.
        Raises:
            CourierError: If authentication fails or the courier is unreachable.
        """
        log.info("Requesting new Shiprocket API token.")
        try:
            response = await self.client.post(
                "/v1/external/auth/login",
                json={"email": self.email, "password": self.password},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response, "authentication failed")
            log.error(f"Shiprocket login failed (HTTP {e.response.status_code}): {message}")
            raise CourierError(f"Courier authentication failed: {message}") from e
        except httpx.RequestError as e:
            log.error(f"Shiprocket unreachable during login: {e}")
            raise CourierError("Unable to connect to tracking service") from e

        body = _json_body(response, "token")
        if body is None:
            log.error(f"Shiprocket login answered HTTP {response.status_code} without a token.")
            raise CourierError("Courier authentication failed: no token returned")
        return body["token"]

    async def track(self, awb_code: str) -> TrackingInfo:
        """
        Fetches the tracking history of a shipment.
        Args:
            awb_code (str): Air waybill number assigned by the courier.
        Returns:
            TrackingInfo: Normalized tracking data.
        Raises:
            TrackingNotFound: If the courier knows no shipment for this AWB.
            CourierError: If the courier API fails or the session expired.
        """
        token = await self.tokens.get_token()
        try:
            response = await self.client.get(
                f"/v1/external/courier/track/awb/{awb_code}",
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                log.warning(f"[AWB: {awb_code}] Shiprocket token rejected, clearing cache.")
                self.tokens.invalidate()
                raise CourierError("Courier session expired, please retry") from e
            if e.response.status_code == 404:
                raise TrackingNotFound(f"No tracking information for AWB {awb_code}") from e
            message = _error_message(e.response, "Unable to fetch tracking information")
            log.error(f"[AWB: {awb_code}] Shiprocket error (HTTP {e.response.status_code}): {message}")
            raise CourierError(message) from e
        except httpx.RequestError as e:
            log.error(f"[AWB: {awb_code}] Shiprocket unreachable: {e}")
            raise CourierError("Unable to connect to tracking service") from e

        body = _json_body(response)
        if body is None:
            log.error(f"[AWB: {awb_code}] Shiprocket answered HTTP {response.status_code} with an unreadable body.")
            raise CourierError("Unable to fetch tracking information")
        return parse_tracking(awb_code, body)


def parse_tracking(awb_code: str, payload: dict) -> TrackingInfo:
    """
    Converts Shiprocket's tracking_data payload into a TrackingInfo.
    Raises:
        TrackingNotFound: If track_status is 0 or no shipment is listed.
    """
    tracking = payload.get("tracking_data") or {}
    shipments = tracking.get("shipment_track") or []
    if not tracking.get("track_status") or not shipments:
        raise TrackingNotFound(tracking.get("error") or f"No tracking information for AWB {awb_code}")

    shipment = shipments[0]
    activities = [
        TrackingActivity(
            date=str(a.get("date") or ""),
            activity=str(a.get("activity") or ""),
            location=str(a.get("location") or ""),
        )
        for a in tracking.get("shipment_track_activities") or []
    ]
    return TrackingInfo(
        awb_code=str(shipment.get("awb_code") or awb_code),
        courier_name=str(shipment.get("courier_name") or ""),
        current_status=str(shipment.get("current_status") or ""),
        delivered_date=shipment.get("delivered_date") or None,
        activities=activities,
    )


# --- Email Client (Resend REST) ---
class ResendClient:
    """
    Client for the Resend email API.
    Sends one transactional email per call.
    """
    def __init__(
            self,
            api_key: str,
            base_url: str = "https://api.resend.com",
            timeout: float = 10.0,
            client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.client = client or _build_client(base_url, timeout)

    async def aclose(self):
        await self.client.aclose()

    async def send_email(self, sender: str, to: str, subject: str, html: str) -> str:
        """
        Sends a single email.
        Returns:
            str: The Resend message id.
        Raises:
            EmailDeliveryError: If Resend rejects the message or is unreachable.
        """
        payload = {"from": sender, "to": [to], "subject": subject, "html": html}
        try:
            response = await self.client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response, "Failed to send email")
            log.warning(f"Resend rejected email to {to} (HTTP {e.response.status_code}): {message}")
            raise EmailDeliveryError(message) from e
        except httpx.RequestError as e:
            log.error(f"Resend unreachable while sending to {to}: {e}")
            raise EmailDeliveryError("Email service unreachable") from e

        body = _json_body(response, "id")
        if body is None:
            log.warning(f"Resend answered HTTP {response.status_code} without an email id for {to}.")
            raise EmailDeliveryError("Email service returned an invalid response")
        return body["id"]
