# module storefront.checkout.views

"""Endpoints de la fonction de checkout.
- /create-checkout-session: crée la session Stripe et enregistre la commande (rate-limité).
- /webhook: reçoit les événements Stripe et complète la commande quand le paiement est confirmé.
CORS: la fonction est appelable depuis n'importe quelle origine (pré-vol OPTIONS inclus).
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool
from pydantic import ValidationError

from storefront.infra.supabase_client import get_optional_service_supabase
from storefront.utils.rate_limit import optional_rate_limit
from storefront.checkout import service as checkout_service
from storefront.checkout.errors import CheckoutError
from storefront.checkout.idempotency import IdempotencyStore, get_idempotency_store
from storefront.checkout.models import CheckoutRequest
from storefront.checkout.stripe_client import PaymentGateway, get_payment_gateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, user-id, idempotency-key",
}

def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)

def _validation_message(exc: ValidationError) -> str:
    first = (exc.errors() or [{}])[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"Invalid checkout payload: {loc} {first.get('msg', '')}".strip()

@router.options("/create-checkout-session", include_in_schema=False)
async def create_checkout_session_preflight():
    return PlainTextResponse("ok", headers=CORS_HEADERS)

@router.post("/create-checkout-session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(
    request: Request,
    user_id: Optional[str] = Header(None, alias="user-id"),
    idempotency_key: Optional[str] = Header(None, alias="idempotency-key"),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    store: IdempotencyStore = Depends(get_idempotency_store),
    db=Depends(get_optional_service_supabase),
):
    """Crée une session de paiement Stripe pour le panier reçu.
    Étapes:
    - Parse et valide le JSON (items non vide, URLs de redirection).
    - Idempotency-Key: réservée avant Stripe; déjà réservée -> attend et renvoie la session de la première requête
      (409 si elle n'est toujours pas publiée).
    - Délègue au service: session Stripe puis commande « pending » best-effort.
    - Retourne {"sessionId": ...}; toute erreur -> 400 {"error": <message>}.
    """
    try:
        body = await request.json()
        checkout = CheckoutRequest.model_validate(body or {})
    except ValidationError as e:
        return _error(_validation_message(e))
    except Exception as e:
        logger.warning("checkout.create_checkout_session: unreadable body: %s", e)
        return _error("Invalid JSON body")

    if not await store.claim(idempotency_key):
        cached = await store.wait_for_session(idempotency_key)
        if not cached:
            return _error("Checkout already in progress for this cart", 409)
        logger.info("checkout.create_checkout_session replayed idempotency_key=%s", idempotency_key)
        return JSONResponse({"sessionId": cached}, headers=CORS_HEADERS)

    try:
        session_id = await run_in_threadpool(
            checkout_service.create_checkout_session,
            checkout,
            gateway=gateway,
            db=db,
            user_id=user_id,
            idempotency_key=idempotency_key,
        )
    except CheckoutError as e:
        await store.release(idempotency_key)
        return _error(str(e))

    await store.remember(idempotency_key, session_id)
    return JSONResponse({"sessionId": session_id}, headers=CORS_HEADERS)

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(
    request: Request,
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db=Depends(get_optional_service_supabase),
):
    """Webhook Stripe: complète la commande lorsque checkout.session.completed est reçu.
    - parse_event: valide la signature (Stripe-Signature + STRIPE_WEBHOOK_SECRET).
    - Délègue au service: paiement confirmé + adresse de livraison réelle.
    - Réponse: {"status": "ok" | "noop" | "ignored"}; base indisponible -> 503 (Stripe relivrera l'événement).
    """
    if db is None:
        logger.error("checkout.webhook: no database client, event not processed")
        return _error("Order storage unavailable", 503)
    try:
        payload = await request.body()
        signature = request.headers.get("stripe-signature")
        event = gateway.parse_event(payload, signature)
    except Exception:
        logger.exception("Erreur webhook_stripe")
        return _error("Invalid Stripe webhook payload")
    return checkout_service.record_payment(event, db=db)
