import pytest
from unittest.mock import MagicMock

from storefront.checkout.errors import MalformedResponseError, RequestError
from storefront.checkout.requester import CheckoutRequester, get_checkout_requester
from storefront.utils.security import get_optional_user


class FakeRequester(CheckoutRequester):
    def __init__(self, session_id="cs_test_cart", error=None):
        super().__init__(function_url="https://fn.test/create-checkout-session", anon_key="anon", origin="https://shop.test")
        self.session_id = session_id
        self.error = error
        self.calls = []

    def create_checkout_session(self, items, profile, *, user_id=None, idempotency_key=None):
        self.calls.append({"items": list(items), "profile": profile, "user_id": user_id, "idempotency_key": idempotency_key})
        if self.error:
            raise self.error
        return self.session_id


@pytest.fixture()
def requester(app):
    fake = FakeRequester()
    app.dependency_overrides[get_checkout_requester] = lambda: fake
    try:
        yield fake
    finally:
        app.dependency_overrides.pop(get_checkout_requester, None)


@pytest.fixture()
def catalogue(db):
    """Produit 'p-1' et profil stocké servis par la même chaîne select().eq().limit()."""
    rows = {
        "products": [{"id": "p-1", "name": "Linen Shirt", "price": 500}],
        "profiles": [{"id": "test-user", "first_name": "Asha", "last_name": "Rao", "email": "", "city": "Pune"}],
    }

    def table(name):
        t = MagicMock(name=name)

        def eq(column, value):
            query = MagicMock()
            matches = [r for r in rows.get(name, []) if str(r.get(column)) == str(value)]
            query.limit.return_value.execute.return_value.data = matches
            return query

        t.select.return_value.eq.side_effect = eq
        return t

    db.table.side_effect = table
    return rows


def test_empty_cart_summary(client):
    r = client.get("/api/v1/cart")
    assert r.status_code == 200
    body = r.json()
    assert body["items"] == []
    assert body["item_count"] == 0
    assert r.headers["cache-control"].startswith("no-store")


def test_add_update_remove_items(client, catalogue):
    r = client.post("/api/v1/cart/items", json={"product_id": "p-1", "quantity": 2, "size": "M"})
    assert r.status_code == 200
    body = r.json()
    assert body["items"][0]["name"] == "Linen Shirt"
    assert body["items"][0]["price"] == 500
    assert body["subtotal"] == 1000

    # même produit, même taille: fusion
    body = client.post("/api/v1/cart/items", json={"product_id": "p-1", "size": "M"}).json()
    assert body["item_count"] == 3
    assert len(body["items"]) == 1

    body = client.patch("/api/v1/cart/items/p-1", json={"quantity": 1, "size": "M"}).json()
    assert body["item_count"] == 1

    body = client.delete("/api/v1/cart/items/p-1", params={"size": "M"}).json()
    assert body["items"] == []


def test_add_unknown_product_is_404(client, catalogue):
    r = client.post("/api/v1/cart/items", json={"product_id": "nope"})
    assert r.status_code == 404
    assert r.json() == {"detail": "Product not found"}


def test_patch_missing_line_is_404(client):
    r = client.patch("/api/v1/cart/items/p-404", json={"quantity": 2})
    assert r.status_code == 404


def test_clear_cart(client, catalogue):
    client.post("/api/v1/cart/items", json={"product_id": "p-1"})
    assert client.delete("/api/v1/cart").json()["items"] == []
    assert client.get("/api/v1/cart").json()["items"] == []


def test_checkout_requires_sign_in(client, app, requester):
    app.dependency_overrides[get_optional_user] = lambda: None
    r = client.post("/api/v1/cart/checkout")
    assert r.status_code == 401
    assert r.json() == {"notice": "Please sign in to continue"}
    assert requester.calls == []


def test_checkout_empty_cart_notice(client, requester):
    r = client.post("/api/v1/cart/checkout")
    assert r.status_code == 400
    assert r.json() == {"notice": "Your cart is empty"}
    assert requester.calls == []


def test_checkout_returns_session_and_uses_merged_profile(client, catalogue, requester):
    client.post("/api/v1/cart/items", json={"product_id": "p-1", "quantity": 2})
    r = client.post("/api/v1/cart/checkout", json={"city": "Mumbai", "postal_code": "400001"})

    assert r.status_code == 200
    assert r.json()["sessionId"] == "cs_test_cart"
    assert "publishableKey" in r.json()

    call = requester.calls[0]
    assert call["user_id"] == "test-user"
    assert call["profile"].email == "test@example.com"
    assert call["profile"].full_name == "Asha Rao"
    assert call["profile"].city == "Mumbai"
    assert len(call["idempotency_key"]) == 64
    assert [it.product_id for it in call["items"]] == ["p-1"]


def test_repurchase_of_same_cart_gets_a_new_idempotency_key(client, catalogue, requester):
    client.post("/api/v1/cart/items", json={"product_id": "p-1"})
    client.post("/api/v1/cart/checkout")
    client.post("/api/v1/cart/checkout")
    keys = [c["idempotency_key"] for c in requester.calls]
    assert len(keys) == 2
    assert keys[0] != keys[1]


def test_edited_shipping_name_changes_idempotency_key(client, catalogue, requester):
    requester.error = RequestError("Failed to create checkout session")
    client.post("/api/v1/cart/items", json={"product_id": "p-1"})
    client.post("/api/v1/cart/checkout")
    requester.error = None
    client.post("/api/v1/cart/checkout", json={"first_name": "Asha", "last_name": "Devi"})

    first, second = requester.calls
    assert second["profile"].full_name == "Asha Devi"
    assert first["idempotency_key"] != second["idempotency_key"]


def test_transport_failure_keeps_idempotency_key_for_retry(client, catalogue, requester):
    requester.error = RequestError("Failed to create checkout session: timed out")
    client.post("/api/v1/cart/items", json={"product_id": "p-1"})
    assert client.post("/api/v1/cart/checkout").status_code == 502
    requester.error = None
    assert client.post("/api/v1/cart/checkout").status_code == 200

    first, second = requester.calls
    assert first["idempotency_key"] == second["idempotency_key"]


def test_cleared_cart_gets_a_new_idempotency_key(client, catalogue, requester):
    requester.error = RequestError("Failed to create checkout session: timed out")
    client.post("/api/v1/cart/items", json={"product_id": "p-1"})
    client.post("/api/v1/cart/checkout")
    client.delete("/api/v1/cart")
    client.post("/api/v1/cart/items", json={"product_id": "p-1"})
    client.post("/api/v1/cart/checkout")

    first, second = requester.calls
    assert first["idempotency_key"] != second["idempotency_key"]


@pytest.mark.parametrize("error", [
    RequestError("Failed to create checkout session", status_code=500),
    MalformedResponseError("Checkout response has no sessionId"),
])
def test_checkout_function_failure_is_502_notice(client, catalogue, requester, error):
    requester.error = error
    client.post("/api/v1/cart/items", json={"product_id": "p-1"})
    r = client.post("/api/v1/cart/checkout")
    assert r.status_code == 502
    assert r.json() == {"notice": str(error)}
