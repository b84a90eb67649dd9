"""
Registre central des routers (API v1 + health).
- Boutique: catalog, cart, checkout, payments
- Artiste: booking, subscriptions (newsletter), contact
- Health: health_router
"""
from fastapi import FastAPI
from backend.catalog import views as catalog_views
from backend.cart import views as cart_views
from backend.checkout import views as checkout_views
from backend.payments import views as payments_views
from backend.booking import views as booking_views
from backend.subscriptions import views as subscriptions_views
from backend.contact import views as contact_views
from backend.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # Boutique
    app.include_router(catalog_views.router)
    app.include_router(cart_views.router)
    app.include_router(checkout_views.router)
    app.include_router(payments_views.router)
    # Artiste
    app.include_router(booking_views.router)
    app.include_router(subscriptions_views.router)
    app.include_router(contact_views.router)
    # Health & monitoring
    app.include_router(health_router)
