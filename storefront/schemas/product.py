from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from storefront.schemas.base import PageMeta


class VariantOptionSchema(BaseModel):
    attribute_key: str
    value: Optional[str] = None
    value_id: Optional[str] = None

    class Config:
        from_attributes = True


class VariantSchema(BaseModel):
    id: str
    sku: Optional[str] = None
    price: float
    stock: int
    image_url: Optional[str] = None
    options: List[VariantOptionSchema] = []

    class Config:
        from_attributes = True


class ProductSchema(BaseModel):
    id: str
    slug: str
    title: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    featured: bool
    created_at: Optional[datetime]
    variants: List[VariantSchema] = []

    class Config:
        from_attributes = True


class ProductListItem(BaseModel):
    id: str
    slug: str
    title: str
    image_url: Optional[str] = None
    price: Optional[float] = Field(None, description="最低规格价格")
    in_stock: bool
    featured: bool
    created_at: Optional[datetime]


class ProductListResponse(BaseModel):
    data: List[ProductListItem]
    meta: PageMeta


class ResolveVariantRequest(BaseModel):
    """商品页已选属性"""
    color: Optional[str] = Field(None, examples=["red"])
    size: Optional[str] = Field(None, examples=["M"])
    attributes: Dict[str, str] = Field(default_factory=dict, description="其他属性 key -> 值或值ID")


class ResolveVariantResponse(BaseModel):
    variant: Optional[VariantSchema] = None
    exact: bool = Field(..., description="是否满足所有已选属性")


class StockResponse(BaseModel):
    """单个规格库存响应"""
    variant_id: str
    available_stock: int = Field(..., ge=0, description="可用库存数量")
