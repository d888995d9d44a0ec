"""
Adaptateur Stripe: centralise les appels Checkout et la validation des webhooks.
La clé secrète est passée à chaque appel (pas de stripe.api_key global),
le gateway est injecté dans les services via Depends(get_payment_gateway).
"""
import stripe
from typing import Any, Dict, List, Optional

from storefront.config import STRIPE_SECRET_KEY, STRIPE_API_VERSION, STRIPE_WEBHOOK_SECRET

def _as_dict(obj: Any) -> Dict[str, Any]:
    # Les objets Stripe sont dict-compatibles; to_dict() selon la version du SDK
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)

# module storefront.checkout.stripe_client
class PaymentGateway:
    def __init__(self, api_key: str, api_version: str = STRIPE_API_VERSION, webhook_secret: str = ""):
        self.api_key = api_key
        self.api_version = api_version
        self.webhook_secret = webhook_secret

    def _require_key(self) -> None:
        if not self.api_key:
            raise RuntimeError("STRIPE_SECRET_KEY manquant: impossible d'appeler Stripe")

    def create_session(
        self,
        *,
        line_items: List[Dict[str, Any]],
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str],
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Crée une session Stripe Checkout en mode paiement unique.
        - line_items: lignes price_data (articles + frais de port)
        - customer_email: pré-remplit le formulaire Stripe (omis si vide)
        - idempotency_key: rejouée par Stripe pendant 24h (même session renvoyée)
        Retour: dict session (ex: {"id": "cs_test_...", "url": "https://..."})
        """
        self._require_key()
        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": line_items,
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if customer_email:
            params["customer_email"] = customer_email
        request_options: Dict[str, Any] = {"api_key": self.api_key, "stripe_version": self.api_version}
        if idempotency_key:
            request_options["idempotency_key"] = idempotency_key
        session = stripe.checkout.Session.create(**params, **request_options)
        return _as_dict(session)

    def parse_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Valide un événement webhook signé (Stripe-Signature + secret webhook).
        Soulève stripe.SignatureVerificationError / ValueError si invalide.
        """
        event = stripe.Webhook.construct_event(payload, signature or "", self.webhook_secret or "")
        return _as_dict(event)

def get_payment_gateway() -> PaymentGateway:
    """Dépendance FastAPI: gateway configuré depuis l'environnement."""
    return PaymentGateway(STRIPE_SECRET_KEY, STRIPE_API_VERSION, STRIPE_WEBHOOK_SECRET)
