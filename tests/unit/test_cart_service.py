import pytest

from storefront.cart import service as cart
from storefront.cart.models import CartItem


def _item(product_id="p-1", quantity=1, size=None, price=500.0, name="Linen Shirt") -> CartItem:
    return CartItem(product_id=product_id, name=name, price=price, quantity=quantity, size=size)


def test_add_merges_same_product_and_size():
    session = {}
    cart.add_item(session, _item(quantity=1, size="M"))
    items = cart.add_item(session, _item(quantity=2, size="M"))
    assert len(items) == 1
    assert items[0].quantity == 3
    assert session[cart.SESSION_KEY][0]["quantity"] == 3


def test_add_keeps_sizes_as_separate_lines():
    session = {}
    cart.add_item(session, _item(size="M"))
    items = cart.add_item(session, _item(size="L"))
    assert [it.size for it in items] == ["M", "L"]


def test_blank_size_is_treated_as_none():
    session = {}
    cart.add_item(session, _item(size=""))
    items = cart.add_item(session, _item(size=None))
    assert len(items) == 1
    assert items[0].size is None
    assert items[0].quantity == 2


def test_update_quantity_and_remove_on_zero():
    session = {}
    cart.add_item(session, _item(size="M"))
    items = cart.update_quantity(session, "p-1", 4, "M")
    assert items[0].quantity == 4

    items = cart.update_quantity(session, "p-1", 0, "M")
    assert items == []


def test_update_unknown_line_raises():
    with pytest.raises(KeyError):
        cart.update_quantity({}, "missing", 2)


def test_remove_and_clear():
    session = {}
    cart.add_item(session, _item("p-1"))
    cart.add_item(session, _item("p-2"))
    items = cart.remove_item(session, "p-1")
    assert [it.product_id for it in items] == ["p-2"]

    assert cart.clear_cart(session) == []
    assert cart.SESSION_KEY not in session


def test_load_cart_drops_corrupted_lines():
    session = {cart.SESSION_KEY: [
        {"product_id": "p-1", "name": "Ok", "price": 10, "quantity": 1},
        {"product_id": "", "price": 10, "quantity": 1},
        {"product_id": "p-3", "price": -1, "quantity": 1},
        {"product_id": "p-4", "price": 10, "quantity": 0},
    ]}
    items = cart.load_cart(session)
    assert [it.product_id for it in items] == ["p-1"]


def test_summary_totals():
    summary = cart.cart_summary([_item(quantity=2)])
    assert summary["item_count"] == 2
    assert summary["subtotal"] == 1000
    assert summary["shipping"] == 99
    # taxe d'affichage: sur le sous-total, hors port
    assert summary["tax"] == 180
    assert summary["total"] == 1279


def test_summary_empty_cart():
    summary = cart.cart_summary([])
    assert summary["items"] == []
    assert summary["subtotal"] == 0
    assert summary["tax"] == 0


def test_cart_nonce_is_stable_until_rotated():
    session = {}
    nonce = cart.cart_nonce(session)
    assert len(nonce) == 32
    assert cart.cart_nonce(session) == nonce

    cart.rotate_cart_nonce(session)
    assert cart.cart_nonce(session) != nonce


def test_clear_cart_drops_nonce():
    session = {}
    cart.add_item(session, _item("p-1"))
    nonce = cart.cart_nonce(session)

    cart.clear_cart(session)
    assert cart.NONCE_KEY not in session
    assert cart.cart_nonce(session) != nonce
