"""
Requester côté boutique: appelle la fonction create-checkout-session et renvoie l'identifiant
opaque de session Stripe. Aucune logique de retry: un échec remonte tel quel à l'appelant.
"""
from typing import Any, Dict, Iterable, Optional
import logging

import httpx

from storefront.config import (
    BASE_URL,
    CHECKOUT_FUNCTION_URL,
    CHECKOUT_REQUEST_TIMEOUT,
    SUPABASE_ANON_KEY,
)
from storefront.checkout.errors import (
    EmptyCartError,
    IncompleteProfileError,
    MalformedResponseError,
    RequestError,
)
from storefront.checkout.line_items import serialize_items
from storefront.users.models import ShippingProfile

logger = logging.getLogger(__name__)

# Placeholder substitué par Stripe lors de la redirection de succès
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"

class CheckoutRequester:
    def __init__(
        self,
        function_url: str = CHECKOUT_FUNCTION_URL,
        anon_key: str = SUPABASE_ANON_KEY,
        origin: str = BASE_URL,
        timeout: float = CHECKOUT_REQUEST_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.function_url = function_url
        self.anon_key = anon_key
        self.origin = origin.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def success_url(self) -> str:
        return f"{self.origin}/order-success?session_id={SESSION_ID_PLACEHOLDER}"

    @property
    def cancel_url(self) -> str:
        return f"{self.origin}/cart"

    def build_payload(self, items: Iterable[Any], profile: ShippingProfile) -> Dict[str, Any]:
        return {
            "items": serialize_items(items),
            "customer_email": profile.email,
            "customer_name": profile.full_name,
            "success_url": self.success_url,
            "cancel_url": self.cancel_url,
        }

    def create_checkout_session(
        self,
        items: Iterable[Any],
        profile: ShippingProfile,
        *,
        user_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> str:
        """
        Poste le panier et le profil à la fonction de checkout.
        - EmptyCartError / IncompleteProfileError: levées avant tout appel réseau
        - RequestError: transport en échec ou statut non-2xx
        - MalformedResponseError: corps non JSON ou sessionId absent/vide
        """
        items = list(items or [])
        if not items:
            raise EmptyCartError("Your cart is empty")
        if not profile.is_complete_for_checkout():
            raise IncompleteProfileError("Email and name are required to checkout")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.anon_key}",
        }
        if user_id:
            headers["user-id"] = user_id
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(self.function_url, json=self.build_payload(items, profile), headers=headers)
        except httpx.HTTPError as e:
            logger.exception("checkout.requester: transport error url=%s", self.function_url)
            raise RequestError(f"Failed to create checkout session: {e}") from e

        if not resp.is_success:
            logger.error("checkout.requester: status=%s body=%s", resp.status_code, resp.text[:500])
            raise RequestError("Failed to create checkout session", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError("Checkout response is not valid JSON") from e

        session_id = data.get("sessionId") if isinstance(data, dict) else None
        if not isinstance(session_id, str) or not session_id.strip():
            raise MalformedResponseError("Checkout response has no sessionId")
        return session_id

def get_checkout_requester() -> CheckoutRequester:
    """Dépendance FastAPI: requester configuré depuis l'environnement."""
    return CheckoutRequester()
