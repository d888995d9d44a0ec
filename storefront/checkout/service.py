"""Cas d'usage 'checkout': orchestre line_items, gateway Stripe et repository.
Rôles:
- Créer la session Stripe Checkout (paiement unique) à partir du panier.
- Enregistrer une commande « pending » et ses lignes (best-effort, ne bloque jamais le paiement).
- Compléter la commande quand Stripe confirme le paiement (webhook).
Les clients Stripe et Supabase sont reçus en paramètres, jamais importés ici.
"""
from typing import Any, Dict, List, Optional
import logging
import time

from storefront.config import CHECKOUT_CURRENCY, SHIPPING_FEE, TAX_RATE, DEFAULT_COUNTRY
from storefront.checkout import line_items as li
from storefront.checkout import repository
from storefront.checkout.errors import CheckoutError
from storefront.checkout.models import CheckoutRequest

logger = logging.getLogger(__name__)

PLACEHOLDER_ADDRESS = "Address will be updated from webhook"

def make_order_number() -> str:
    """Numéro de commande horodaté (millisecondes epoch)."""
    return f"ORD-{int(time.time() * 1000)}"

def split_customer_name(customer_name: str) -> tuple[str, str]:
    parts = (customer_name or "").split()
    first = parts[0] if parts else ""
    last = parts[1] if len(parts) > 1 else ""
    return first, last

def build_order_payload(
    checkout: CheckoutRequest,
    *,
    session_id: str,
    user_id: Optional[str],
    shipping_fee: Any = SHIPPING_FEE,
    tax_rate: Any = TAX_RATE,
) -> Dict[str, Any]:
    """
    En-tête de commande: montants calculés côté serveur (jamais fournis par le client).
    - total_amount = Σ(prix × quantité) + frais de port
    - tax_amount = round(total_amount × taux), recalculé indépendamment du front
    - adresse de livraison provisoire, remplacée à la réception du webhook Stripe
    """
    total_amount = li.compute_total(checkout.items, shipping_fee)
    first_name, last_name = split_customer_name(checkout.customer_name)
    return {
        "order_number": make_order_number(),
        "user_id": user_id,
        "status": "pending",
        "total_amount": total_amount,
        "shipping_amount": shipping_fee,
        "tax_amount": li.compute_tax(total_amount, tax_rate),
        "payment_status": "pending",
        "stripe_payment_intent_id": session_id,
        "shipping_first_name": first_name,
        "shipping_last_name": last_name,
        "shipping_address_1": PLACEHOLDER_ADDRESS,
        "shipping_city": "City",
        "shipping_state": "State",
        "shipping_postal_code": "000000",
        "shipping_country": DEFAULT_COUNTRY,
    }

def build_order_items(order_id: Any, checkout: CheckoutRequest) -> List[Dict[str, Any]]:
    return [
        {
            "order_id": order_id,
            "product_id": item.product_id,
            "product_name": item.name,
            "quantity": item.quantity,
            "size": item.size,
            "unit_price": item.price,
            "total_price": li.compute_subtotal([item]),
        }
        for item in checkout.items
    ]

def record_order(db, checkout: CheckoutRequest, *, session_id: str, user_id: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Persiste l'en-tête puis les lignes, une seule fois par session Stripe:
    une commande existante pour session_id est renvoyée telle quelle (Stripe rejoue la même session
    pour une même clé d'idempotence; une contrainte unique sur stripe_payment_intent_id fait de même).
    Si le lot de lignes échoue, l'en-tête est supprimé (pas de commande sans articles).
    Retourne la commande créée ou None; ne lève jamais.
    """
    if db is None:
        logger.error("checkout.record_order: no database client, order not recorded session_id=%s", session_id)
        return None
    existing = repository.find_order_by_session(db, session_id)
    if existing:
        logger.info("checkout.record_order: already recorded order_id=%s session_id=%s", existing.get("id"), session_id)
        return existing

    order = repository.insert_order(db, build_order_payload(checkout, session_id=session_id, user_id=user_id))
    if not order:
        # Conflit sur la contrainte unique: une requête concurrente a enregistré la même session
        existing = repository.find_order_by_session(db, session_id)
        if existing:
            return existing
        logger.error("checkout.record_order: order insert failed session_id=%s", session_id)
        return None

    rows = build_order_items(order.get("id"), checkout)
    if not repository.insert_order_items(db, rows):
        logger.error("checkout.record_order: items insert failed, rolling back order_id=%s", order.get("id"))
        repository.delete_order(db, order.get("id"))
        return None

    logger.info("checkout.record_order order_id=%s items=%s session_id=%s", order.get("id"), len(rows), session_id)
    return order

def create_checkout_session(
    checkout: CheckoutRequest,
    *,
    gateway,
    db,
    user_id: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> str:
    """
    Fonction create-checkout-session, dans l'ordre:
      1) line_items Stripe (articles + frais de port)
      2) session Stripe en mode paiement (URLs de redirection, email, metadata)
      3-5) commande « pending » + lignes (best-effort)
      6) retourne l'identifiant de session
    Erreurs: tout échec Stripe -> CheckoutError; un échec d'écriture DB est loggé sans interrompre.
    """
    line_items = li.to_line_items(checkout.items, currency=CHECKOUT_CURRENCY, shipping_fee=SHIPPING_FEE)
    try:
        session = gateway.create_session(
            line_items=line_items,
            success_url=checkout.success_url,
            cancel_url=checkout.cancel_url,
            customer_email=checkout.customer_email,
            metadata=li.make_metadata(checkout.customer_name, checkout.items),
            idempotency_key=idempotency_key,
        )
    except Exception as e:
        logger.exception("checkout.create_checkout_session: Stripe session failed")
        raise CheckoutError(str(e)) from e

    session_id = (session or {}).get("id")
    if not session_id:
        raise CheckoutError("Stripe returned a session without id")

    record_order(db, checkout, session_id=session_id, user_id=user_id)
    return session_id

def _shipping_fields_from_session(session: Dict[str, Any]) -> Dict[str, Any]:
    details = session.get("shipping_details") or session.get("customer_details") or {}
    address = details.get("address") or {}
    fields: Dict[str, Any] = {}
    first, last = split_customer_name(details.get("name") or "")
    if first:
        fields["shipping_first_name"] = first
        fields["shipping_last_name"] = last
    mapping = {
        "line1": "shipping_address_1",
        "line2": "shipping_address_2",
        "city": "shipping_city",
        "state": "shipping_state",
        "postal_code": "shipping_postal_code",
        "country": "shipping_country",
    }
    for src, dst in mapping.items():
        if address.get(src):
            fields[dst] = address[src]
    return fields

def record_payment(event: Dict[str, Any], *, db) -> Dict[str, Any]:
    """
    Traite l'événement Stripe checkout.session.completed:
    - payment_status='paid', status='processing'
    - adresse de livraison réelle issue de la session
    Les autres types d'événements sont ignorés.
    """
    if (event or {}).get("type") != "checkout.session.completed":
        return {"status": "ignored"}
    session = ((event or {}).get("data") or {}).get("object") or {}
    session_id = session.get("id") or ""
    if not session_id:
        return {"status": "ignored"}

    fields = {"payment_status": "paid", "status": "processing"}
    fields.update(_shipping_fields_from_session(session))
    updated = repository.mark_order_paid(db, session_id, fields)
    logger.info("checkout.record_payment session_id=%s updated=%s", session_id, updated)
    return {"status": "ok" if updated else "noop"}
