# module storefront.cart.models
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

class CartItem(BaseModel):
    """Ligne de panier: référence produit, nom affiché, prix unitaire, quantité, taille optionnelle."""
    model_config = ConfigDict(extra="ignore")

    product_id: str = Field(min_length=1)
    name: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    size: Optional[str] = None

    @field_validator("size")
    @classmethod
    def _blank_size_is_none(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        return v or None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

class AddCartItem(BaseModel):
    """Corps de POST /api/v1/cart/items: le prix et le nom sont résolus côté serveur."""
    product_id: str = Field(min_length=1)
    quantity: int = Field(1, ge=1)
    size: Optional[str] = None

class UpdateCartItem(BaseModel):
    quantity: int
    size: Optional[str] = None
