# module backend.catalog.views
from fastapi import APIRouter, Depends

from backend.app_setup.dependencies import get_catalog
from backend.utils.rate_limit import optional_rate_limit

from .models import StockUpdateRequest
from .service import CatalogAccessor

router = APIRouter(prefix="/api/v1/products", tags=["Catalog API"])

@router.get("")
def list_products(refresh: bool = False, catalog: CatalogAccessor = Depends(get_catalog)):
    products = catalog.fetch_products(force=refresh)
    return {"products": [p.model_dump(mode="json") for p in products]}

@router.get("/{product_id}")
def get_product(product_id: str, catalog: CatalogAccessor = Depends(get_catalog)):
    return catalog.get_product(product_id).model_dump(mode="json")

@router.put("/{product_id}/stock", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def decrement_stock(product_id: str, payload: StockUpdateRequest, catalog: CatalogAccessor = Depends(get_catalog)):
    """
    Décrémente le stock d'un produit de `quantity` si le stock restant le permet.
    - 409 si stock insuffisant (aucune modification)
    """
    remaining = catalog.reserve_stock(product_id, payload.quantity)
    return {"success": True, "product_id": product_id, "stock": remaining}
