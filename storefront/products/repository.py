"""
Accès aux données 'products' (catalogue en lecture seule).
- Le client Supabase est passé explicitement par l'appelant (dépendance FastAPI).
- Les erreurs sont loggées et transformées en valeurs neutres ([], None, {}).
"""
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

def list_products(db, limit: int = 100) -> List[Dict[str, Any]]:
    """Liste les produits, les plus récents d'abord."""
    try:
        res = (
            db.table("products")
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("products.repository.list_products failed")
        return []

def get_product(db, product_id: str) -> Optional[Dict[str, Any]]:
    if not product_id:
        return None
    try:
        res = db.table("products").select("*").eq("id", product_id).limit(1).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.get_product failed id=%s", product_id)
        return None
