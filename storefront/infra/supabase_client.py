from typing import Optional
import logging
from supabase import create_client, Client
from storefront.config import SUPABASE_URL, SUPABASE_ANON_KEY, SUPABASE_SERVICE_ROLE_KEY

logger = logging.getLogger(__name__)

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def get_supabase() -> Client:
    global _supabase
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON_KEY)
    return _supabase

def get_service_supabase() -> Client:
    """
    Client service-role (bypass RLS) pour les écritures de la fonction de checkout.
    Injecté via Depends(get_service_supabase) plutôt qu'importé dans les services.
    """
    global _service_supabase
    if not SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    return _service_supabase

def get_user_supabase(user_token: str) -> Client:
    """
    Client Supabase 'anon' avec auth utilisateur (RLS actif).
    À utiliser pour lire au nom d'un utilisateur sans polluer l'instance globale.
    """
    if not user_token:
        raise ValueError("user_token is required")
    client = create_client(SUPABASE_URL, SUPABASE_ANON_KEY)
    client.postgrest.auth(user_token)
    return client

def get_optional_service_supabase() -> Optional[Client]:
    """
    Variante tolérante pour les écritures best-effort: None si le client service-role
    est indisponible (clé manquante, URL invalide) au lieu de faire échouer la requête.
    """
    try:
        return get_service_supabase()
    except Exception:
        logger.exception("supabase_client.get_optional_service_supabase: service client unavailable")
        return None
