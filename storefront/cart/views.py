# module storefront.cart.views

"""Endpoints du panier (session navigateur) et action « Proceed to Payment ».
- /api/v1/cart: lecture, ajout, mise à jour, suppression, vidage.
- /api/v1/cart/checkout: demande une session Stripe pour le panier courant via le requester.
Le prix et le nom d'un article sont résolus depuis le catalogue, jamais pris du client.
"""
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.config import STRIPE_PUBLISHABLE_KEY
from storefront.infra.supabase_client import get_supabase
from storefront.utils.security import get_optional_user
from storefront.utils.rate_limit import optional_rate_limit
from storefront.products import repository as products_repo
from storefront.users import repository as users_repo
from storefront.users.models import merge_profile
from storefront.cart import service as cart_service
from storefront.cart.models import AddCartItem, CartItem, UpdateCartItem
from storefront.checkout.line_items import cart_fingerprint
from storefront.checkout.requester import CheckoutRequester, get_checkout_requester
from storefront.checkout.errors import (
    EmptyCartError,
    IncompleteProfileError,
    MalformedResponseError,
    RequestError,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])

def _notice(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"notice": message}, status_code=status_code)

@router.get("")
def get_cart(request: Request) -> Dict[str, Any]:
    return cart_service.cart_summary(cart_service.load_cart(request.session))

@router.post("/items")
def add_cart_item(request: Request, payload: AddCartItem, db=Depends(get_supabase)) -> Dict[str, Any]:
    """Ajoute un produit au panier (404 si le produit n'existe pas)."""
    product = products_repo.get_product(db, payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    item = CartItem(
        product_id=str(product.get("id") or payload.product_id),
        name=product.get("name") or "",
        price=float(product.get("price") or 0),
        quantity=payload.quantity,
        size=payload.size,
    )
    items = cart_service.add_item(request.session, item)
    return cart_service.cart_summary(items)

@router.patch("/items/{product_id}")
def update_cart_item(request: Request, product_id: str, payload: UpdateCartItem) -> Dict[str, Any]:
    try:
        items = cart_service.update_quantity(request.session, product_id, payload.quantity, payload.size)
    except KeyError:
        raise HTTPException(status_code=404, detail="Item not in cart")
    return cart_service.cart_summary(items)

@router.delete("/items/{product_id}")
def remove_cart_item(request: Request, product_id: str, size: Optional[str] = None) -> Dict[str, Any]:
    items = cart_service.remove_item(request.session, product_id, size)
    return cart_service.cart_summary(items)

@router.delete("")
def clear_cart(request: Request) -> Dict[str, Any]:
    return cart_service.cart_summary(cart_service.clear_cart(request.session))

@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def checkout_cart(
    request: Request,
    shipping: Optional[Dict[str, Any]] = Body(None),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    db=Depends(get_supabase),
    requester: CheckoutRequester = Depends(get_checkout_requester),
):
    """Lance le paiement du panier courant.
    Étapes:
    - Non connecté ou panier vide: notice immédiate, aucun appel réseau.
    - Fusionne profil stocké + formulaire de livraison.
    - Appelle la fonction de checkout; clé d'idempotence = empreinte de la demande + jeton du panier,
      renouvelé après chaque tentative aboutie (un rachat du même panier crée une nouvelle session).
    - Retourne {sessionId, publishableKey} pour la redirection vers la page Stripe.
    """
    if not user:
        return _notice("Please sign in to continue", 401)

    items = cart_service.load_cart(request.session)
    if not items:
        return _notice("Your cart is empty", 400)

    stored = dict(users_repo.get_user_profile(db, user.get("id")) or {})
    if not stored.get("email"):
        stored["email"] = user.get("email") or ""
    profile = merge_profile(stored, shipping)
    idempotency_key = cart_fingerprint(
        requester.build_payload(items, profile),
        cart_service.cart_nonce(request.session),
    )

    try:
        session_id = requester.create_checkout_session(
            items,
            profile,
            user_id=user.get("id"),
            idempotency_key=idempotency_key,
        )
    except (EmptyCartError, IncompleteProfileError) as e:
        return _notice(str(e), 400)
    except (RequestError, MalformedResponseError) as e:
        logger.error("cart.checkout failed user_id=%s: %s", user.get("id"), e)
        # Transport en échec ou clé encore réservée (409): même clé au prochain essai
        if isinstance(e, MalformedResponseError) or e.status_code not in (None, 409):
            cart_service.rotate_cart_nonce(request.session)
        return _notice(str(e) or "Checkout failed", 502)

    cart_service.rotate_cart_nonce(request.session)
    return {"sessionId": session_id, "publishableKey": STRIPE_PUBLISHABLE_KEY}
