import os

# Pas de Redis ni de rate limiting réel pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
# Hôte du TestClient accepté par TrustedHostMiddleware
os.environ.setdefault("ALLOWED_HOSTS", "testserver,localhost,127.0.0.1")

import pytest
from typing import Any, Dict, Generator, List
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from storefront.app import app as fastapi_app
from storefront.utils.security import require_user, get_optional_user
from storefront.infra.supabase_client import (
    get_supabase,
    get_service_supabase,
    get_optional_service_supabase,
)
from storefront.orders.views import get_user_db
from storefront.checkout.stripe_client import get_payment_gateway

FAKE_USER: Dict[str, Any] = {
    "id": "test-user",
    "email": "test@example.com",
    "metadata": {"full_name": "Test User"},
    "token": "fake-token",
}

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)

class FakeGateway:
    """
    Gateway Stripe en mémoire: une session distincte par appel, appels enregistrés.
    Comme Stripe, une même idempotency_key rejoue la session déjà créée.
    """

    def __init__(self, fail_with: Exception | None = None):
        self.calls: List[Dict[str, Any]] = []
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.fail_with = fail_with

    def create_session(self, **kwargs) -> Dict[str, Any]:
        self.calls.append(kwargs)
        if self.fail_with:
            raise self.fail_with
        key = kwargs.get("idempotency_key")
        if key and key in self.sessions:
            return self.sessions[key]
        n = len(self.calls)
        session = {"id": f"cs_test_{n:04d}", "url": f"https://checkout.stripe.test/cs_test_{n:04d}"}
        if key:
            self.sessions[key] = session
        return session

    def parse_event(self, payload, signature):
        raise ValueError("bad signature")

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture()
def fake_user() -> Dict[str, Any]:
    return dict(FAKE_USER)

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_users(app, fake_user):
    app.dependency_overrides[require_user] = lambda: fake_user
    app.dependency_overrides[get_optional_user] = lambda: fake_user
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)
        app.dependency_overrides.pop(get_optional_user, None)

# Aucun accès Supabase réel: chaque client est un MagicMock
@pytest.fixture(autouse=True)
def db(app) -> Generator[MagicMock, None, None]:
    mock_db = MagicMock(name="supabase")
    for dep in (get_supabase, get_service_supabase, get_optional_service_supabase, get_user_db):
        app.dependency_overrides[dep] = lambda: mock_db
    try:
        yield mock_db
    finally:
        for dep in (get_supabase, get_service_supabase, get_optional_service_supabase, get_user_db):
            app.dependency_overrides.pop(dep, None)

@pytest.fixture()
def gateway(app) -> Generator[FakeGateway, None, None]:
    fake = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: fake
    try:
        yield fake
    finally:
        app.dependency_overrides.pop(get_payment_gateway, None)

@pytest.fixture()
def checkout_body() -> Dict[str, Any]:
    return {
        "items": [
            {"product_id": "p-1", "name": "Linen Shirt", "price": 500, "quantity": 2, "size": "M"},
        ],
        "customer_email": "asha@example.com",
        "customer_name": "Asha Rao",
        "success_url": "https://shop.test/order-success?session_id={CHECKOUT_SESSION_ID}",
        "cancel_url": "https://shop.test/cart",
    }
