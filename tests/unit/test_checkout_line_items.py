import json

from storefront.checkout.line_items import (
    METADATA_VALUE_LIMIT,
    cart_fingerprint,
    compute_subtotal,
    compute_tax,
    compute_total,
    items_metadata,
    make_metadata,
    to_line_items,
    to_minor_units,
)
from storefront.cart.models import CartItem


ITEMS = [{"product_id": "p-1", "name": "Linen Shirt", "price": 500, "quantity": 2, "size": "M"}]


def test_total_includes_fixed_shipping():
    assert compute_subtotal(ITEMS) == 1000
    assert compute_total(ITEMS, 99) == 1099


def test_tax_is_rounded_to_whole_units():
    # 1099 × 0.18 = 197.82
    assert compute_tax(1099, 0.18) == 198
    # 0.5 arrondi vers le haut
    assert compute_tax(25, 0.18) == 5


def test_to_minor_units_rounds_half_up():
    assert to_minor_units(500) == 50000
    assert to_minor_units("19.99") == 1999
    assert to_minor_units(0.295) == 30
    assert to_minor_units(None) == 0


def test_line_items_convert_to_paise_and_append_shipping():
    line_items = to_line_items(ITEMS, currency="inr", shipping_fee=99)
    assert len(line_items) == 2

    shirt = line_items[0]
    assert shirt["price_data"]["currency"] == "inr"
    assert shirt["price_data"]["unit_amount"] == 50000
    assert shirt["price_data"]["product_data"]["name"] == "Linen Shirt"
    assert shirt["price_data"]["product_data"]["metadata"] == {"product_id": "p-1", "size": "M"}
    assert shirt["quantity"] == 2

    shipping = line_items[-1]
    assert shipping["price_data"]["product_data"]["name"] == "Shipping"
    assert shipping["price_data"]["unit_amount"] == 9900
    assert shipping["quantity"] == 1

    charged = sum(li["price_data"]["unit_amount"] * li["quantity"] for li in line_items)
    assert charged == 109900


def test_line_items_accept_models_and_missing_size():
    items = [CartItem(product_id="p-2", name="Cap", price=249.5, quantity=1)]
    line_items = to_line_items(items, currency="inr", shipping_fee=99)
    meta = line_items[0]["price_data"]["product_data"]["metadata"]
    assert meta == {"product_id": "p-2", "size": ""}
    assert line_items[0]["price_data"]["unit_amount"] == 24950


def test_metadata_items_json_stays_valid_when_cart_is_large():
    many = [
        {"product_id": f"product-{i}", "name": "Very long product name " * 3, "price": 10, "quantity": 1, "size": "XL"}
        for i in range(20)
    ]
    meta = make_metadata("Asha Rao", many)
    assert meta["customer_name"] == "Asha Rao"
    assert len(meta["items"]) <= METADATA_VALUE_LIMIT
    decoded = json.loads(meta["items"])
    # forme compacte, lignes entières, dans l'ordre du panier
    assert decoded[0] == {"product_id": "product-0", "quantity": 1, "size": "XL"}
    assert [d["product_id"] for d in decoded] == [f"product-{i}" for i in range(len(decoded))]
    assert 0 < len(decoded) < 20


def test_metadata_items_falls_back_to_empty_list():
    huge = [{"product_id": "x" * 600, "name": "n", "price": 1, "quantity": 1}]
    assert items_metadata(huge) == "[]"
    assert json.loads(items_metadata(huge)) == []


def test_metadata_items_json_small_cart_is_complete():
    meta = make_metadata("Asha Rao", ITEMS)
    decoded = json.loads(meta["items"])
    assert decoded == [{"product_id": "p-1", "name": "Linen Shirt", "price": 500, "quantity": 2, "size": "M"}]


PAYLOAD = {
    "items": ITEMS,
    "customer_email": "asha@example.com",
    "customer_name": "Asha Rao",
    "success_url": "https://shop.test/order-success?session_id={CHECKOUT_SESSION_ID}",
    "cancel_url": "https://shop.test/cart",
}


def test_fingerprint_is_stable_for_same_payload_and_nonce():
    a = {"product_id": "a", "name": "A", "price": 10, "quantity": 1}
    b = {"product_id": "b", "name": "B", "price": 20.0, "quantity": 3, "size": "L"}
    first = dict(PAYLOAD, items=[a, b])
    second = dict(PAYLOAD, items=[b, dict(a, price=10.0)])
    assert cart_fingerprint(first, "n-1") == cart_fingerprint(second, "n-1")


def test_fingerprint_changes_with_nonce():
    assert cart_fingerprint(PAYLOAD, "n-1") != cart_fingerprint(PAYLOAD, "n-2")


def test_fingerprint_covers_every_checkout_parameter():
    base = cart_fingerprint(PAYLOAD, "n-1")
    variants = [
        dict(PAYLOAD, items=[dict(ITEMS[0], quantity=3)]),
        dict(PAYLOAD, items=[dict(ITEMS[0], name="Linen Shirt (blue)")]),
        dict(PAYLOAD, customer_email="other@example.com"),
        dict(PAYLOAD, customer_email="Asha@Example.com"),
        dict(PAYLOAD, customer_name="Asha R."),
        dict(PAYLOAD, success_url="https://shop.test/thanks"),
        dict(PAYLOAD, cancel_url="https://shop.test/"),
    ]
    keys = {cart_fingerprint(v, "n-1") for v in variants}
    assert base not in keys
    assert len(keys) == len(variants)
