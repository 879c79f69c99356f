"""
errors.py — Exception hierarchy of the Checkout Service

Each exception carries the HTTP status it is reported with. Translation into
JSON envelopes happens in the FastAPI exception handlers registered in main.py.
"""

from typing import Any, Dict, Optional, Sequence


class CheckoutServiceError(Exception):
    """Base class for all errors raised by this service."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CartValidationError(CheckoutServiceError):
    """
    A submitted cart (or any request body) failed validation.

    Attributes:
        field (str): Path of the offending field, e.g. 'cartItems[1].price'.
        message (str): Human readable description naming the field.
    """
    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class GatewayError(CheckoutServiceError):
    """The payment gateway was unreachable or rejected the request."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        # HTTP status returned by the gateway, None for transport errors
        self.gateway_status = status_code


class ServiceNotConfigured(CheckoutServiceError):
    """Credentials for an external integration are missing."""
    status_code = 503


class GatewayNotConfigured(ServiceNotConfigured):
    status_code = 500

    def __init__(self, message: str = "Payment gateway not configured. Please set environment variables."):
        super().__init__(message)


class CourierError(CheckoutServiceError):
    """The courier (Shiprocket) API failed or rejected the request."""
    status_code = 502


class TrackingNotFound(CheckoutServiceError):
    status_code = 404


class EmailDeliveryError(CheckoutServiceError):
    """The email API (Resend) refused or failed to deliver a message."""
    status_code = 502


_REQUEST_SECTIONS = ("body", "path", "query")


def _format_location(location: Sequence[Any]) -> str:
    """('cartItems', 1, 'price') -> 'cartItems[1].price'"""
    path = ""
    for part in location:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def from_pydantic_errors(errors: Sequence[Dict[str, Any]]) -> CartValidationError:
    """
    Turns the first entry of a pydantic error list into a CartValidationError.

    Only the first violation is reported; the request as a whole is rejected.
    The leading "body"/"path"/"query" segment FastAPI adds to request errors
    is dropped.
    """
    if not errors:
        return CartValidationError("body", "Invalid request body")
    first = errors[0]
    location = [part for part in first.get("loc", ()) if part not in _REQUEST_SECTIONS]
    if not location or not isinstance(location[0], str):
        return CartValidationError("body", f"Invalid request body: {first.get('msg', 'malformed')}")
    field = _format_location(location)
    return CartValidationError(field, f"Invalid {field}: {first.get('msg', 'invalid value')}")
