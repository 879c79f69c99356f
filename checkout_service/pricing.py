"""
pricing.py — Cart Validation and Order Pricing

Pure functions that turn an untrusted cart into a PricedCart. Nothing here
performs I/O; the same cart and shipping state always produce the same price.

Rules:
    • Subtotal: sum of price × quantity, must be in (0, 10,000,000]
    • Shipping: 70 for Tamil Nadu addresses, 100 elsewhere, 0 while the
      address is unknown
    • Tax: flat 10 % of the subtotal (shipping is not taxed)
    • Total: subtotal + shipping + tax, rounded to paise
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from .errors import CartValidationError, from_pydantic_errors
from .models import CartItem

TAX_RATE = 0.1
LOW_COST_SHIPPING = 70
STANDARD_SHIPPING = 100
MAX_CART_TOTAL = 10_000_000

# Known spellings/abbreviations customers type for Tamil Nadu
LOW_COST_REGION_SPELLINGS = ("tamil nadu", "tamil nadoo", "tamilnadu", "tn")

_cart_adapter = TypeAdapter(List[CartItem])


class ShippingRegion(str, Enum):
    LOW_COST = "low_cost"
    STANDARD = "standard"


SHIPPING_RATES = {
    ShippingRegion.LOW_COST: LOW_COST_SHIPPING,
    ShippingRegion.STANDARD: STANDARD_SHIPPING,
}


@dataclass(frozen=True)
class PricedCart:
    """
    Server-side price of a validated cart, in rupees.

    Attributes:
        subtotal (float): Sum of price × quantity.
        shipping_cost (float): Flat rate of the shipping region.
        tax (float): TAX_RATE × subtotal.
        total (float): subtotal + shipping_cost + tax, rounded to 2 decimals.
        item_count (int): Number of cart lines.
    """
    subtotal: float
    shipping_cost: float
    tax: float
    total: float
    item_count: int

    @property
    def amount_minor(self) -> int:
        """Total in paise, the integer actually charged by the gateway."""
        return to_minor_units(self.total)

    def breakdown(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shippingCost": self.shipping_cost,
            "tax": self.tax,
            "total": self.total,
        }

    def audit_notes(self) -> dict:
        """Pricing breakdown attached to the gateway order for reconciliation."""
        return {
            "subtotal": f"{self.subtotal:.2f}",
            "shipping": f"{self.shipping_cost:.2f}",
            "tax": f"{self.tax:.2f}",
            "total": f"{self.total:.2f}",
            "itemCount": self.item_count,
        }


def to_minor_units(amount: float) -> int:
    """Converts rupees to paise, rounding half away from zero."""
    paise = Decimal(str(amount)) * 100
    return int(paise.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def classify_region(shipping_state: Optional[str]) -> Optional[ShippingRegion]:
    """
    Maps a free-text state name onto a shipping bucket.

    Matching is a case-insensitive substring test against the known
    Tamil Nadu spellings. Returns None when no state was given (None or "").
    """
    if not shipping_state:
        return None
    normalized = shipping_state.lower()
    if any(spelling in normalized for spelling in LOW_COST_REGION_SPELLINGS):
        return ShippingRegion.LOW_COST
    return ShippingRegion.STANDARD


def shipping_cost_for(shipping_state: Optional[str]) -> int:
    region = classify_region(shipping_state)
    if region is None:
        # Address not entered yet (price preview)
        return 0
    return SHIPPING_RATES[region]


def parse_cart(raw_items: Any) -> List[CartItem]:
    """
    Validates raw cart data into CartItem models.

    Raises:
        CartValidationError: On the first invalid field, e.g. 'cartItems[0].price'.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise CartValidationError("cartItems", "Invalid or empty cart: cartItems must be a non-empty list")
    try:
        return _cart_adapter.validate_python(raw_items)
    except ValidationError as e:
        errors = [dict(err, loc=("cartItems",) + tuple(err["loc"])) for err in e.errors()]
        raise from_pydantic_errors(errors) from e


def price_cart(items: Iterable[Any], shipping_state: Optional[str] = None) -> PricedCart:
    """
    Validates a cart and computes its subtotal, shipping, tax and total.

    Args:
        items: CartItem models or raw dicts with productId, price and quantity.
        shipping_state (Optional[str]): Shipping address state; None if unknown.

    Returns:
        PricedCart: The deterministic price of the cart.

    Raises:
        CartValidationError: If the cart is empty, an item is out of range, or
            the subtotal is not within (0, MAX_CART_TOTAL].
    """
    cart = parse_cart(list(items))

    subtotal = sum(item.price * item.quantity for item in cart)
    if subtotal <= 0 or subtotal > MAX_CART_TOTAL:
        raise CartValidationError(
            "cartItems",
            f"Invalid cart total: subtotal must be greater than 0 and at most {MAX_CART_TOTAL}",
        )

    shipping_cost = shipping_cost_for(shipping_state)
    tax = subtotal * TAX_RATE
    total = round(subtotal + shipping_cost + tax, 2)

    return PricedCart(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax=tax,
        total=total,
        item_count=len(cart),
    )
