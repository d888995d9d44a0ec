"""
Endpoint de confirmation de commande (retour de la page Stripe).
- Sécurité: require_user (la commande est lue au nom de l'utilisateur, RLS actif).
- Pas de commande encore visible: {"status": "loading"} pour que le front réessaie à son rythme.
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends

from storefront.infra.supabase_client import get_user_supabase
from storefront.utils.security import require_user
from .service import get_order_confirmation, summarize_order

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])

def get_user_db(user: Dict[str, Any] = Depends(require_user)):
    return get_user_supabase(user.get("token") or "")

@router.get("/success")
def order_success(
    session_id: Optional[str] = None,
    user: Dict[str, Any] = Depends(require_user),
    db=Depends(get_user_db),
):
    order = get_order_confirmation(db, user.get("id"), session_id)
    if not order:
        return {"status": "loading", "order": None}
    return {"status": "ready", "order": summarize_order(order)}
