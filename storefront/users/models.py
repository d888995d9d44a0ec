# module storefront.users.models
"""Profil de livraison: issu du profil utilisateur, modifiable par le formulaire de checkout."""
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict

from storefront.config import DEFAULT_COUNTRY

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "mobile_no",
    "address_1",
    "address_2",
    "city",
    "state",
    "postal_code",
    "country",
)

class ShippingProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    mobile_no: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = DEFAULT_COUNTRY

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_complete_for_checkout(self) -> bool:
        return bool(self.email.strip() and self.full_name)

def merge_profile(user_profile: Optional[Dict[str, Any]], form: Optional[Dict[str, Any]]) -> ShippingProfile:
    """
    Fusionne le profil stocké et le formulaire de livraison.
    - Les valeurs du formulaire priment.
    - Une valeur vide du formulaire n'efface pas la valeur stockée.
    """
    merged: Dict[str, Any] = {}
    for source in (user_profile or {}, form or {}):
        for key in PROFILE_FIELDS:
            value = source.get(key)
            if value is None:
                continue
            value = str(value).strip()
            if value or key not in merged:
                merged[key] = value
    if not merged.get("country"):
        merged["country"] = DEFAULT_COUNTRY
    return ShippingProfile(**merged)
