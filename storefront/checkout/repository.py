"""
Accès aux données pour la fonction de checkout (tables orders, order_items).
- Le client service-role est passé explicitement (bypass RLS côté serveur).
- Écritures best-effort: les erreurs sont loggées, jamais propagées.
"""
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# module storefront.checkout.repository
def find_order_by_session(db, session_id: str) -> Optional[Dict[str, Any]]:
    """Commande déjà enregistrée pour la session Stripe (rejeu d'une même clé d'idempotence)."""
    if not session_id:
        return None
    try:
        res = (
            db.table("orders")
            .select("id, order_number, stripe_payment_intent_id")
            .eq("stripe_payment_intent_id", session_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if isinstance(rows, list) and rows else None
    except Exception:
        logger.exception("checkout.repository.find_order_by_session failed session_id=%s", session_id)
        return None

def insert_order(db, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Insère l'en-tête de commande et retourne la ligne créée (avec id), None si échec.
    """
    try:
        res = db.table("orders").insert(payload).execute()
        rows = res.data or []
        return rows[0] if isinstance(rows, list) and rows else None
    except Exception:
        logger.exception("checkout.repository.insert_order failed order_number=%s", payload.get("order_number"))
        return None

def insert_order_items(db, rows: List[Dict[str, Any]]) -> bool:
    """Insère les lignes de commande en un seul lot."""
    if not rows:
        return True
    try:
        db.table("order_items").insert(rows).execute()
        return True
    except Exception:
        logger.exception("checkout.repository.insert_order_items failed order_id=%s", rows[0].get("order_id"))
        return False

def delete_order(db, order_id: Any) -> bool:
    """Action compensatoire: supprime un en-tête resté sans lignes."""
    try:
        db.table("orders").delete().eq("id", order_id).execute()
        return True
    except Exception:
        logger.exception("checkout.repository.delete_order failed order_id=%s", order_id)
        return False

def mark_order_paid(db, session_id: str, fields: Dict[str, Any]) -> bool:
    """
    Complète la commande liée à la session Stripe (stripe_payment_intent_id = session.id).
    Retourne True si au moins une ligne a été mise à jour.
    """
    try:
        res = (
            db.table("orders")
            .update(fields)
            .eq("stripe_payment_intent_id", session_id)
            .execute()
        )
        return len(res.data or []) > 0
    except Exception:
        logger.exception("checkout.repository.mark_order_paid failed session_id=%s", session_id)
        return False
