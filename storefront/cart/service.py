"""
Panier tenu par la session navigateur (cookie signé SessionMiddleware).
- Liste ordonnée de CartItem, propriété exclusive de la session.
- Les totaux affichés (sous-total, port, taxe, total) sont calculés ici;
  la fonction de checkout recalcule indépendamment ses propres montants.
"""
from typing import Any, Dict, List, MutableMapping, Optional
import logging
import secrets

from pydantic import ValidationError

from storefront.config import SHIPPING_FEE, TAX_RATE
from storefront.cart.models import CartItem
from storefront.checkout.line_items import compute_subtotal, compute_tax

logger = logging.getLogger(__name__)

SESSION_KEY = "cart"
# Jeton propre au panier courant, part de la clé d'idempotence du checkout
NONCE_KEY = "cart_nonce"

def _same_line(item: CartItem, product_id: str, size: Optional[str]) -> bool:
    return item.product_id == str(product_id) and (item.size or None) == (size or None)

def load_cart(session: MutableMapping[str, Any]) -> List[CartItem]:
    """Relit le panier de la session; les lignes corrompues sont ignorées."""
    items: List[CartItem] = []
    for raw in session.get(SESSION_KEY) or []:
        try:
            items.append(CartItem.model_validate(raw))
        except ValidationError:
            logger.warning("cart.load_cart: dropping invalid line %s", raw)
    return items

def save_cart(session: MutableMapping[str, Any], items: List[CartItem]) -> List[CartItem]:
    session[SESSION_KEY] = [it.model_dump() for it in items]
    return items

def add_item(session: MutableMapping[str, Any], item: CartItem) -> List[CartItem]:
    """Ajoute une ligne; même produit + même taille: les quantités s'additionnent."""
    items = load_cart(session)
    for existing in items:
        if _same_line(existing, item.product_id, item.size):
            existing.quantity += item.quantity
            existing.price = item.price
            existing.name = item.name or existing.name
            return save_cart(session, items)
    items.append(item)
    return save_cart(session, items)

def update_quantity(session: MutableMapping[str, Any], product_id: str, quantity: int, size: Optional[str] = None) -> List[CartItem]:
    """Fixe la quantité d'une ligne; quantité <= 0 retire la ligne."""
    if quantity <= 0:
        return remove_item(session, product_id, size)
    items = load_cart(session)
    for existing in items:
        if _same_line(existing, product_id, size):
            existing.quantity = quantity
            break
    else:
        raise KeyError(product_id)
    return save_cart(session, items)

def remove_item(session: MutableMapping[str, Any], product_id: str, size: Optional[str] = None) -> List[CartItem]:
    items = [it for it in load_cart(session) if not _same_line(it, product_id, size)]
    return save_cart(session, items)

def clear_cart(session: MutableMapping[str, Any]) -> List[CartItem]:
    session.pop(SESSION_KEY, None)
    session.pop(NONCE_KEY, None)
    return []

def cart_nonce(session: MutableMapping[str, Any]) -> str:
    """Jeton stable tant que le panier n'a pas été soumis au paiement (double clic = même clé)."""
    nonce = session.get(NONCE_KEY)
    if not nonce:
        nonce = session[NONCE_KEY] = secrets.token_hex(16)
    return nonce

def rotate_cart_nonce(session: MutableMapping[str, Any]) -> str:
    """Nouveau jeton après une tentative: un nouvel achat du même panier obtient une nouvelle session."""
    session[NONCE_KEY] = secrets.token_hex(16)
    return session[NONCE_KEY]

def cart_subtotal(items: List[CartItem]) -> float | int:
    return compute_subtotal(items)

def cart_summary(items: List[CartItem]) -> Dict[str, Any]:
    """
    Récapitulatif affiché avant paiement:
    - tax = round(subtotal × TAX_RATE) (sur le sous-total, hors port)
    - total = subtotal + shipping + tax
    """
    subtotal = cart_subtotal(items)
    tax = compute_tax(subtotal, TAX_RATE)
    return {
        "items": [it.model_dump() for it in items],
        "item_count": sum(it.quantity for it in items),
        "subtotal": subtotal,
        "shipping": SHIPPING_FEE,
        "tax": tax,
        "total": subtotal + SHIPPING_FEE + tax,
    }
