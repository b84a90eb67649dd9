# module backend.catalog.models
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class Product(BaseModel):
    id: str
    name: str
    description: str = ""
    price: Decimal = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    sizes: Optional[List[str]] = None
    category: Optional[str] = None

    @property
    def has_sizes(self) -> bool:
        return bool(self.sizes)

    @property
    def cover_image(self) -> Optional[str]:
        return self.image or (self.images[0] if self.images else None)


class StockUpdateRequest(BaseModel):
    quantity: int = Field(ge=1)
