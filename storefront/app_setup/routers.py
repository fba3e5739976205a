"""
Registre central des routers.
- API: auth, products, cart, wishlist, payment, orders (préfixe /api)
- Health: /health
"""
from fastapi import FastAPI
from storefront.auth.views import router as auth_router
from storefront.products.views import router as products_router
from storefront.cart.views import router as cart_router
from storefront.wishlist.views import router as wishlist_router
from storefront.payments.views import router as payments_router
from storefront.orders.views import router as orders_router
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API
    app.include_router(auth_router)
    app.include_router(products_router)
    app.include_router(cart_router)
    app.include_router(wishlist_router)
    app.include_router(payments_router)
    app.include_router(orders_router)
    # Health & monitoring
    app.include_router(health_router)
