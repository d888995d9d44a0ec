# module storefront.checkout.models
from typing import List
from pydantic import BaseModel, ConfigDict, Field

from storefront.cart.models import CartItem

class CheckoutRequest(BaseModel):
    """
    Corps JSON de la fonction create-checkout-session:
    { items: [{product_id, name, price, quantity, size}], customer_email, customer_name, success_url, cancel_url }
    """
    model_config = ConfigDict(extra="ignore")

    items: List[CartItem] = Field(min_length=1)
    customer_email: str = ""
    customer_name: str = ""
    success_url: str = Field(min_length=1)
    cancel_url: str = Field(min_length=1)
