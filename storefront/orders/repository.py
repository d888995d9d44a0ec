"""
Lecture des commandes pour la page de confirmation.
- Sélection: en-tête + lignes + produit (nom, images) pour l'affichage.
- Les erreurs sont loggées et transformées en None (pas de retry).
"""
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

ORDER_SELECT = "*, order_items(*, products(name, images))"

def _first(res) -> Optional[Dict[str, Any]]:
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

def latest_order_for_user(db, user_id: str) -> Optional[Dict[str, Any]]:
    """
    Commande la plus récente de l'utilisateur (tri created_at desc, limit 1).
    Ne tient pas compte de la session Stripe: sous checkouts concurrents, peut renvoyer une autre commande.
    """
    if not user_id:
        return None
    try:
        res = (
            db.table("orders")
            .select(ORDER_SELECT)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("orders.repository.latest_order_for_user failed user_id=%s", user_id)
        return None

def order_by_session(db, session_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    """Commande liée à la session Stripe (stripe_payment_intent_id = session.id) et à l'utilisateur."""
    if not session_id or not user_id:
        return None
    try:
        res = (
            db.table("orders")
            .select(ORDER_SELECT)
            .eq("stripe_payment_intent_id", session_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("orders.repository.order_by_session failed session_id=%s", session_id)
        return None
