"""Endpoints du panier serveur (rattaché au cookie de session).
- GET /api/v1/cart: contenu + total
- POST /api/v1/cart/items: ajout avec réservation de stock (via le catalogue)
- PATCH /api/v1/cart/items/{id}: change la quantité (< 1 supprime la ligne)
- DELETE /api/v1/cart/items/{id}, DELETE /api/v1/cart
"""
from fastapi import APIRouter, Depends, Request

from backend.app_setup.dependencies import get_catalog
from backend.catalog.service import CatalogAccessor
from backend.utils.errors import NotFoundError
from backend.utils.rate_limit import optional_rate_limit

from .models import AddCartItemRequest, UpdateQuantityRequest
from .service import add_product, cart_session, get_or_create_cart_id

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])

@router.get("")
def get_cart(request: Request):
    with cart_session(get_or_create_cart_id(request.session)) as store:
        return store.to_dict()

@router.post("/items", status_code=201, dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def add_item(request: Request, payload: AddCartItemRequest, catalog: CatalogAccessor = Depends(get_catalog)):
    item, cart = add_product(get_or_create_cart_id(request.session), catalog, payload.product_id, payload.quantity, payload.size)
    return {"item": item.model_dump(mode="json"), "cart": cart}

@router.patch("/items/{item_id}")
def update_item(request: Request, item_id: str, payload: UpdateQuantityRequest):
    with cart_session(get_or_create_cart_id(request.session)) as store:
        if not store.update_quantity(item_id, payload.quantity):
            raise NotFoundError("Article absent du panier")
        return store.to_dict()

@router.delete("/items/{item_id}")
def remove_item(request: Request, item_id: str):
    with cart_session(get_or_create_cart_id(request.session)) as store:
        removed = store.remove_item(item_id)
        return {"removed": removed, "cart": store.to_dict()}

@router.delete("")
def clear_cart(request: Request):
    with cart_session(get_or_create_cart_id(request.session)) as store:
        store.clear()
        return store.to_dict()
