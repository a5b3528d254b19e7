from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from storefront.models.order import (
    OrderStatus,
    PaymentStatus,
    FulfillmentStatus,
)


# ==================== 请求模型 ====================

class GuestCartItem(BaseModel):
    """游客购物车中的一项（由浏览器提交）"""
    product_id: Optional[str] = Field(None, description="商品ID")
    variant_id: Optional[str] = Field(None, description="规格ID")
    quantity: Optional[int] = Field(None, description="购买数量")


class CheckoutRequest(BaseModel):
    """结算请求

    联系方式等字段在服务层校验，以便返回统一的 Problem Details 错误。
    """
    cart_id: Optional[str] = Field(None, description="登录用户的购物车ID，游客为 guest-cart")
    items: Optional[List[GuestCartItem]] = Field(None, description="游客购物车商品")
    email: Optional[str] = Field(None, description="联系邮箱", examples=["buyer@example.com"])
    phone: Optional[str] = Field(None, description="联系电话", examples=["+37499123456"])
    shipping_method: str = Field("pickup", description="pickup / delivery")
    shipping_address: Optional[Dict[str, Any]] = Field(None, description="收货地址，至少包含 address 和 city")
    payment_method: str = Field("idram", description="idram / arca / cash_on_delivery")
    notes: Optional[str] = Field(None, description="订单备注")


# ==================== 响应模型 ====================

class CheckoutOrderSummary(BaseModel):
    id: str
    number: str
    status: OrderStatus
    payment_status: PaymentStatus
    total: float
    currency: str


class CheckoutPayment(BaseModel):
    provider: str
    payment_url: Optional[str] = None
    expires_at: Optional[datetime] = None


class CheckoutResponse(BaseModel):
    """结算结果"""
    order: CheckoutOrderSummary
    payment: CheckoutPayment
    next_action: str = Field(..., description="redirect_to_payment / view_order")


class OrderListItem(BaseModel):
    id: str
    number: str
    status: OrderStatus
    payment_status: PaymentStatus
    fulfillment_status: FulfillmentStatus
    total: float
    currency: str
    created_at: Optional[datetime]
    items_count: int


class OrderListResponse(BaseModel):
    data: List[OrderListItem]


class VariantOptionOut(BaseModel):
    attribute_key: Optional[str] = None
    value: Optional[str] = None
    value_id: Optional[str] = None


class OrderItemDetail(BaseModel):
    variant_id: str
    product_title: str
    variant_title: str
    sku: str
    quantity: int
    price: float
    total: float
    image_url: Optional[str] = None
    variant_options: List[VariantOptionOut] = []


class OrderTotals(BaseModel):
    subtotal: float
    discount: float
    shipping: float
    tax: float
    total: float
    currency: str


class OrderCustomer(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None


class OrderDetail(BaseModel):
    """用户侧订单详情"""
    id: str
    number: str
    status: OrderStatus
    payment_status: PaymentStatus
    fulfillment_status: FulfillmentStatus
    items: List[OrderItemDetail]
    totals: OrderTotals
    customer: OrderCustomer
    shipping_address: Optional[Dict[str, Any]] = None
    shipping_method: str
    tracking_number: Optional[str] = None
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
