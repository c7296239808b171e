# ecostore_admin/api/schemas/product.py
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductOut(BaseModel):
    id: Optional[str]
    title: str
    description: str
    original_price: float
    discount_percent: float
    stock: int
    category: str
    tags: List[str]
    is_top_pick: bool
    is_trending: bool
    images: List[str]
    created_at: Optional[str] = None


class BulkDiscount(BaseModel):
    product_ids: List[str] = Field(..., min_length=1)
    discount_percent: float = Field(..., ge=0, le=100)


class SaveWarningOut(BaseModel):
    id: str
    product_id: Optional[str] = ""
    step: str
    message: str
    items: List[str]
    created_at: Optional[str] = None
