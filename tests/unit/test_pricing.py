import pytest

from checkout_service.errors import CartValidationError
from checkout_service.pricing import (
    MAX_CART_TOTAL,
    ShippingRegion,
    classify_region,
    parse_cart,
    price_cart,
    shipping_cost_for,
    to_minor_units,
)


def _cart(**overrides):
    item = {"productId": "p1", "price": 500, "quantity": 2}
    item.update(overrides)
    return [item]


def test_price_cart_tamil_nadu_scenario():
    priced = price_cart(_cart(), "Tamil Nadu")
    assert priced.subtotal == 1000
    assert priced.shipping_cost == 70
    assert priced.tax == 100
    assert priced.total == 1170
    assert priced.amount_minor == 117000
    assert priced.item_count == 1


def test_price_cart_other_state_scenario():
    priced = price_cart(_cart(), "Kerala")
    assert priced.shipping_cost == 100
    assert priced.total == 1200
    assert priced.amount_minor == 120000


def test_price_cart_without_state_charges_no_shipping():
    priced = price_cart(_cart(), None)
    assert priced.shipping_cost == 0
    assert priced.total == 1100


@pytest.mark.parametrize("state", [
    "Tamil Nadu", "TAMIL NADU", "tamil nadoo", "Tamilnadu", "TN", "Chennai, tamil nadu 600001",
])
def test_low_cost_region_spellings(state):
    assert classify_region(state) is ShippingRegion.LOW_COST
    assert shipping_cost_for(state) == 70


@pytest.mark.parametrize("state", ["Kerala", "Karnataka", "Maharashtra", "  "])
def test_other_regions_pay_standard_rate(state):
    assert classify_region(state) is ShippingRegion.STANDARD
    assert shipping_cost_for(state) == 100


def test_absent_region_is_unclassified():
    assert classify_region(None) is None
    assert shipping_cost_for(None) == 0
    assert classify_region("") is None
    assert shipping_cost_for("") == 0


def test_tax_is_ten_percent_of_subtotal_only():
    items = [
        {"productId": "serum", "price": 349.5, "quantity": 3},
        {"productId": "toner", "price": 199.99, "quantity": 1},
    ]
    priced = price_cart(items, "Goa")
    assert priced.subtotal == 349.5 * 3 + 199.99
    assert priced.tax == 0.1 * priced.subtotal
    assert priced.total == round(priced.subtotal + priced.shipping_cost + priced.tax, 2)
    assert priced.amount_minor == to_minor_units(priced.total)


def test_breakdown_and_audit_notes():
    priced = price_cart(_cart(), "TN")
    assert priced.breakdown() == {"subtotal": 1000, "shippingCost": 70, "tax": 100, "total": 1170}
    assert priced.audit_notes() == {
        "subtotal": "1000.00",
        "shipping": "70.00",
        "tax": "100.00",
        "total": "1170.00",
        "itemCount": 1,
    }


@pytest.mark.parametrize("amount, paise", [
    (1170, 117000),
    (0.01, 1),
    (10.125, 1013),
    (99.995, 10000),
    (1234.56, 123456),
])
def test_to_minor_units_rounds_half_up(amount, paise):
    assert to_minor_units(amount) == paise


@pytest.mark.parametrize("items, field", [
    ([], "cartItems"),
    (_cart(productId=""), "cartItems[0].productId"),
    (_cart(productId="   "), "cartItems[0].productId"),
    (_cart(productId=42), "cartItems[0].productId"),
    (_cart(price=0), "cartItems[0].price"),
    (_cart(price=-5), "cartItems[0].price"),
    (_cart(price=100001), "cartItems[0].price"),
    (_cart(price="500"), "cartItems[0].price"),
    (_cart(quantity=0), "cartItems[0].quantity"),
    (_cart(quantity=101), "cartItems[0].quantity"),
    (_cart(quantity=1.5), "cartItems[0].quantity"),
])
def test_invalid_carts_are_rejected(items, field):
    with pytest.raises(CartValidationError) as exc:
        price_cart(items, "Tamil Nadu")
    assert exc.value.field == field
    assert exc.value.status_code == 400


def test_missing_product_id_names_field():
    with pytest.raises(CartValidationError) as exc:
        parse_cart([{"price": 10, "quantity": 1}])
    assert exc.value.field == "cartItems[0].productId"
    assert "cartItems[0].productId" in exc.value.message


def test_first_invalid_item_is_reported():
    items = _cart() + [{"productId": "p2", "price": 10, "quantity": 0}, {"productId": "", "price": 1, "quantity": 1}]
    with pytest.raises(CartValidationError) as exc:
        price_cart(items)
    assert exc.value.field == "cartItems[1].quantity"


def test_cart_must_be_a_list():
    with pytest.raises(CartValidationError) as exc:
        parse_cart({"productId": "p1", "price": 1, "quantity": 1})
    assert exc.value.field == "cartItems"


def test_subtotal_ceiling():
    items = [
        {"productId": "p1", "price": 100000, "quantity": 100},
        {"productId": "p2", "price": 1, "quantity": 1},
    ]
    with pytest.raises(CartValidationError) as exc:
        price_cart(items)
    assert "cart total" in exc.value.message
    assert str(MAX_CART_TOTAL) in exc.value.message


def test_subtotal_at_ceiling_is_accepted():
    priced = price_cart([{"productId": "p1", "price": 100000, "quantity": 100}])
    assert priced.subtotal == MAX_CART_TOTAL
