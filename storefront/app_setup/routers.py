"""
Registre central des routers (API v1, health).
- API v1: products, cart, checkout, orders
- Health: health_router
"""
from fastapi import FastAPI
from storefront.products import views as products_views
from storefront.cart import views as cart_views
from storefront.checkout import views as checkout_views
from storefront.orders import views as orders_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l'application.
    - L'ordre n'a pas d'impact sauf conflits de chemins (évités par préfixes).
    """
    app.include_router(products_views.router)
    app.include_router(cart_views.router)
    app.include_router(checkout_views.router)
    app.include_router(orders_views.router)
    app.include_router(health_router)
