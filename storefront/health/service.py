"""
Diagnostic de la base utilisée par le checkout (GET /health/supabase).
Le rapport n'échoue jamais: chaque étape (DNS, client, tables) décrit son propre état.
"""
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse
import logging
import socket

from storefront.config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY
from storefront.infra import supabase_client

logger = logging.getLogger(__name__)

# Colonnes lues ou écrites par le checkout et la page de confirmation
CHECKOUT_COLUMNS = {
    "products": "id, name, price",
    "orders": "id, order_number, payment_status, stripe_payment_intent_id",
    "order_items": "order_id, product_id, quantity, unit_price",
}

def resolve_host(url: str) -> Tuple[Optional[str], Dict[str, Any]]:
    hostname = urlparse(url).hostname if url else None
    if not hostname:
        return None, {"resolved": None}
    try:
        addresses = {a[4][0] for a in socket.getaddrinfo(hostname, 443)}
    except OSError as e:
        return hostname, {"resolved": False, "error": str(e)}
    return hostname, {"resolved": True, "addresses": sorted(addresses)}

def read_columns(client, table: str, columns: str) -> Dict[str, Any]:
    try:
        rows = client.table(table).select(columns).limit(1).execute().data or []
    except Exception as e:
        logger.warning("health.read_columns failed table=%s error=%s", table, e)
        return {"readable": False, "columns": columns, "error": str(e)}
    return {"readable": True, "columns": columns, "sample": len(rows)}

def health_supabase_info() -> Dict[str, Any]:
    hostname, dns = resolve_host(SUPABASE_URL)
    report: Dict[str, Any] = {
        "host": hostname,
        "dns": dns,
        "service_role": bool(SUPABASE_SERVICE_ROLE_KEY),
        "client": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_supabase()
    except Exception as e:
        report["client"] = str(e)
        report["ok"] = False
        return report
    report["client"] = "ready"
    report["tables"] = {name: read_columns(client, name, cols) for name, cols in CHECKOUT_COLUMNS.items()}
    report["ok"] = all(t["readable"] for t in report["tables"].values())
    return report
