"""Couche d'accès aux données (Supabase) pour les profils utilisateurs.
Les exceptions sont « catchées » et transformées en None afin de ne pas casser le checkout.
"""
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

def get_user_profile(db, user_id: str) -> Optional[Dict[str, Any]]:
    """Récupère le profil (table profiles) servant de base au formulaire de livraison.
    - Retour: dict profil ou None si introuvable/erreur
    """
    if not user_id:
        return None
    try:
        res = db.table("profiles").select("*").eq("id", user_id).limit(1).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("users.repository.get_user_profile failed user_id=%s", user_id)
        return None
