from fastapi import Request, HTTPException, Depends
from typing import Optional, Dict, Any
import logging
from storefront.infra import supabase_client

COOKIE_NAME = "sb_access"

logger = logging.getLogger(__name__)

def _token_from_request(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)
    return token or None

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Normalise l'utilisateur issu de supabase.auth.get_user(access_token)."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None),
        }
    return {
        "id": user.get("id"),
        "email": user.get("email"),
        "metadata": user.get("user_metadata") or {},
        "token": access_token,
    }

def get_current_user(request: Request) -> Dict[str, Any]:
    token = _token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Please sign in to continue")

    try:
        user = get_user_from_access_token(token)
        if not user.get("id"):
            raise HTTPException(status_code=401, detail="Session expired, please sign in again")
        return user
    except HTTPException:
        raise
    except Exception:
        logger.exception("security.get_current_user failed")
        raise HTTPException(status_code=401, detail="Session expired, please sign in again")

def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """Variante tolérante: None si aucun utilisateur valide (pages publiques)."""
    try:
        return get_current_user(request)
    except HTTPException:
        return None

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
