# module storefront.products.views
from typing import Any, Dict
from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.infra.supabase_client import get_supabase
from storefront.products import repository

router = APIRouter(prefix="/api/v1/products", tags=["Products API"])

def _normalize(product: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(product.get("id") or ""),
        "name": product.get("name") or "",
        "price": float(product.get("price") or 0),
        "images": product.get("images") or [],
        "sizes": product.get("sizes") or [],
    }

@router.get("")
def list_products(limit: int = Query(100, ge=1, le=500), db=Depends(get_supabase)) -> Dict[str, Any]:
    """
    Catalogue public, normalisé {id, name, price, images, sizes}.
    Les lignes sans id sont écartées.
    """
    products = repository.list_products(db, limit=limit)
    return {"products": [_normalize(p) for p in products if p.get("id")]}

@router.get("/{product_id}")
def get_product(product_id: str, db=Depends(get_supabase)) -> Dict[str, Any]:
    product = repository.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return _normalize(product)
