from pydantic import BaseModel, Field
from typing import List, Optional


class AddCartItemRequest(BaseModel):
    """加入购物车"""
    variant_id: str = Field(..., min_length=1, description="规格ID")
    quantity: int = Field(1, gt=0, description="数量")


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., gt=0, description="新的数量")


class CartItemOut(BaseModel):
    id: str
    product_id: str
    variant_id: str
    product_title: str
    variant_title: Optional[str] = None
    sku: Optional[str] = None
    quantity: int
    price: float
    total: float
    available_stock: int


class CartOut(BaseModel):
    id: str
    items: List[CartItemOut]
    items_count: int
    subtotal: float
    currency: str
