from typing import Any, Dict, Optional
from . import repository

def get_order_confirmation(db, user_id: str, session_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Commande à afficher après le retour de Stripe.
    - Cherche d'abord la commande de la session Stripe.
    - À défaut, retombe sur la plus récente de l'utilisateur (comportement historique).
    """
    order = repository.order_by_session(db, session_id, user_id) if session_id else None
    if order:
        return order
    return repository.latest_order_for_user(db, user_id)

def summarize_order(order: Dict[str, Any]) -> Dict[str, Any]:
    """Aplatit les lignes: nom du produit courant, sinon le nom figé à la commande."""
    items = []
    for row in order.get("order_items") or []:
        product = row.get("products") or {}
        images = product.get("images") or []
        items.append({
            "product_id": row.get("product_id"),
            "name": product.get("name") or row.get("product_name"),
            "image": images[0] if images else None,
            "quantity": row.get("quantity"),
            "size": row.get("size"),
            "unit_price": row.get("unit_price"),
            "total_price": row.get("total_price"),
        })
    return {
        "id": order.get("id"),
        "order_number": order.get("order_number"),
        "status": order.get("status"),
        "payment_status": order.get("payment_status"),
        "total_amount": order.get("total_amount"),
        "shipping_amount": order.get("shipping_amount"),
        "tax_amount": order.get("tax_amount"),
        "created_at": order.get("created_at"),
        "items": items,
    }
