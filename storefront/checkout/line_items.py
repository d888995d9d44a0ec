"""
Logique panier -> Stripe pure (pas de Stripe, pas de DB).
Montants d'entrée en unités majeures (roupies), montants Stripe en unités mineures (paise).
"""
import hashlib
import json
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping

# Limite Stripe: 500 caractères par valeur de metadata
METADATA_VALUE_LIMIT = 500
SHIPPING_LINE_NAME = "Shipping"

# module storefront.checkout.line_items
def _field(item: Any, name: str, default: Any = None) -> Any:
    # Accepte indifféremment des dicts et des modèles pydantic
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)

def _decimal(value: Any) -> Decimal:
    return Decimal(str(value if value is not None else 0))

def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def to_minor_units(price: Any) -> int:
    """Convertit un prix (float|int|str) en unités mineures, arrondi au plus proche (0.5 vers le haut)."""
    return _round_half_up(_decimal(price) * 100)

def _as_number(value: Decimal) -> float | int:
    return int(value) if value == value.to_integral_value() else float(value)

def compute_subtotal(items: Iterable[Any]) -> float | int:
    """Σ(prix unitaire × quantité)."""
    total = sum((_decimal(_field(it, "price")) * int(_field(it, "quantity") or 0) for it in items), Decimal("0"))
    return _as_number(total)

def compute_total(items: Iterable[Any], shipping_fee: Any) -> float | int:
    """Total de commande = Σ(prix × quantité) + frais de port fixes."""
    return _as_number(_decimal(compute_subtotal(items)) + _decimal(shipping_fee))

def compute_tax(amount: Any, rate: Any) -> int:
    """Taxe forfaitaire arrondie à l'unité (ex: round(1099 × 0.18) = 198)."""
    return _round_half_up(_decimal(amount) * _decimal(rate))

def to_line_items(items: Iterable[Any], *, currency: str, shipping_fee: Any) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe:
    - une entrée price_data par article (nom, metadata product_id/size, unit_amount en paise, quantité)
    - une entrée 'Shipping' à quantité 1 pour les frais de port fixes
    """
    line_items: List[Dict[str, Any]] = []
    for it in items:
        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": _field(it, "name") or "Article",
                    "metadata": {
                        "product_id": str(_field(it, "product_id") or ""),
                        "size": _field(it, "size") or "",
                    },
                },
                "unit_amount": to_minor_units(_field(it, "price")),
            },
            "quantity": int(_field(it, "quantity") or 0),
        })
    line_items.append({
        "price_data": {
            "currency": currency,
            "product_data": {"name": SHIPPING_LINE_NAME},
            "unit_amount": to_minor_units(shipping_fee),
        },
        "quantity": 1,
    })
    return line_items

def serialize_items(items: Iterable[Any]) -> List[Dict[str, Any]]:
    return [
        {
            "product_id": str(_field(it, "product_id") or ""),
            "name": _field(it, "name") or "",
            "price": _field(it, "price"),
            "quantity": int(_field(it, "quantity") or 0),
            "size": _field(it, "size"),
        }
        for it in items
    ]

def _fit_json(rows: List[Dict[str, Any]], limit: int) -> str | None:
    # Retire des lignes entières en fin de liste: le JSON reste toujours valide
    rows = list(rows)
    while rows:
        raw = json.dumps(rows, separators=(",", ":"))
        if len(raw) <= limit:
            return raw
        rows.pop()
    return None

def items_metadata(items: Iterable[Any], limit: int = METADATA_VALUE_LIMIT) -> str:
    """
    JSON des lignes tenant dans la limite Stripe.
    - d'abord la forme complète, puis une forme compacte {product_id, quantity, size}
    - les lignes qui ne tiennent pas sont retirées en fin de liste
    """
    rows = serialize_items(items)
    full = json.dumps(rows, separators=(",", ":"))
    if len(full) <= limit:
        return full
    compact = [
        {k: v for k, v in (("product_id", r["product_id"]), ("quantity", r["quantity"]), ("size", r["size"])) if v}
        for r in rows
    ]
    return _fit_json(compact, limit) or "[]"

def make_metadata(customer_name: str, items: Iterable[Any]) -> Dict[str, str]:
    """Métadonnées Stripe de la session: nom du client et lignes du panier (JSON valide, tronqué par lignes)."""
    return {
        "customer_name": (customer_name or "")[:METADATA_VALUE_LIMIT],
        "items": items_metadata(items),
    }

def cart_fingerprint(payload: Mapping[str, Any], nonce: str = "") -> str:
    """
    Empreinte de la demande de checkout, utilisée comme clé d'idempotence.
    - couvre tout ce qui part chez Stripe, valeurs exactes: lignes (ordre indifférent), email, nom, URLs de redirection
    - nonce: propre au panier de la session, renouvelé après chaque tentative et au vidage du panier
    """
    lines = sorted(
        (d["product_id"], d["size"] or "", d["quantity"], str(_decimal(d["price"]).normalize()), d["name"])
        for d in serialize_items(payload.get("items") or [])
    )
    raw = json.dumps({
        "nonce": nonce or "",
        "email": payload.get("customer_email") or "",
        "name": payload.get("customer_name") or "",
        "success_url": payload.get("success_url") or "",
        "cancel_url": payload.get("cancel_url") or "",
        "lines": lines,
    })
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
