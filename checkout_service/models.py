"""
models.py — Data Models for Checkout Requests and Responses

This module defines the data structures used for order pricing, payment
verification, shipment tracking and newsletter delivery.
It uses Pydantic models to ensure type safety and validation of incoming data
before any business logic runs.

Models:
    - CartItem: A single line item of a submitted cart.
    - CreateOrderRequest: Body of POST /api/create-order.
    - PriceBreakdown / CreateOrderResponse: Pricing result relayed to the client.
    - VerifyPaymentRequest: Body of POST /api/verify-payment.
    - TrackingActivity / TrackingInfo: Normalized courier tracking data.
    - NewsletterRequest: Body of POST /api/send-newsletter.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr, field_validator

MAX_ITEM_PRICE = 100_000
MAX_ITEM_QUANTITY = 100


class CartItem(BaseModel):
    """
    Represents a single product line in a submitted cart.

    Client supplied and therefore untrusted: every field is range-checked.

    Attributes:
        productId (str): Non-empty product identifier.
        price (float): Unit price in rupees, 0 < price <= 100000.
        quantity (int): Units ordered, 0 < quantity <= 100.
    """
    productId: StrictStr = Field(..., min_length=1)
    price: StrictFloat = Field(..., gt=0, le=MAX_ITEM_PRICE)
    quantity: StrictInt = Field(..., gt=0, le=MAX_ITEM_QUANTITY)

    @field_validator("productId")
    @classmethod
    def _product_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("productId must not be blank")
        return value


class CreateOrderRequest(BaseModel):
    """
    Represents an order-creation request from the storefront checkout.

    Attributes:
        cartItems (List[CartItem]): Non-empty list of cart lines.
        shippingState (Optional[str]): Free-text state of the shipping address.
            None means the address is not known yet (no shipping charged).
        currency (Optional[str]): ISO 4217 code; the configured default when omitted.
    """
    cartItems: List[CartItem] = Field(..., min_length=1)
    shippingState: Optional[StrictStr] = None
    currency: Optional[StrictStr] = Field(None, min_length=3, max_length=3)


class PriceBreakdown(BaseModel):
    subtotal: float
    shippingCost: float
    tax: float
    total: float


class CreateOrderResponse(BaseModel):
    """
    Gateway order relayed to the client together with the server-side pricing.

    Attributes:
        order_id (str): Razorpay order id the client must pay against.
        amount (int): Charged amount in minor units (paise).
        currency (str): Currency of the gateway order.
        calculatedTotal (float): Total in major units (rupees).
        breakdown (PriceBreakdown): subtotal, shippingCost, tax and total.
    """
    order_id: str
    amount: int
    currency: str
    calculatedTotal: float
    breakdown: PriceBreakdown


class VerifyPaymentRequest(BaseModel):
    """
    The three tokens returned by Razorpay checkout after a payment.

    All fields are optional here so that missing values are reported as a
    verification failure rather than a schema error.
    """
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class VerifyPaymentResponse(BaseModel):
    status: str
    message: str


class TrackingActivity(BaseModel):
    date: str = ""
    activity: str = ""
    location: str = ""


class TrackingInfo(BaseModel):
    """Shipment status in the shape the storefront's order popup renders."""
    awb_code: str
    courier_name: str = ""
    current_status: str = ""
    delivered_date: Optional[str] = None
    activities: List[TrackingActivity] = []


class NewsletterRequest(BaseModel):
    """
    Attributes:
        recipients (List[str]): Subscriber email addresses (at least one).
        subject (str): Email subject line.
        message (str): Plain-text body; converted to simple HTML before sending.
    """
    recipients: List[StrictStr] = Field(..., min_length=1)
    subject: StrictStr = Field(..., min_length=1)
    message: StrictStr = Field(..., min_length=1)

    @field_validator("recipients")
    @classmethod
    def _unique_recipients(cls, value: List[str]) -> List[str]:
        # Order preserving de-duplication, blanks dropped
        cleaned = list(dict.fromkeys(r.strip() for r in value if r.strip()))
        if not cleaned:
            raise ValueError("at least one recipient is required")
        return cleaned

    @field_validator("subject", "message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class NewsletterResult(BaseModel):
    success: bool = True
    sent: int
    failed: int
