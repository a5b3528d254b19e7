"""后台管理接口的请求与响应模型"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from storefront.models.order import (
    OrderStatus,
    PaymentStatus,
    FulfillmentStatus,
)
from storefront.schemas.base import PageMeta
from storefront.schemas.order import OrderTotals, VariantOptionOut
from storefront.schemas.contact import ContactMessageOut


# ==================== 订单 ====================

class AdminOrderListItem(BaseModel):
    id: str
    number: str
    status: OrderStatus
    payment_status: PaymentStatus
    fulfillment_status: FulfillmentStatus
    total: float
    subtotal: float
    discount_amount: float
    shipping_amount: float
    tax_amount: float
    currency: str
    customer_email: str
    customer_phone: str
    customer_first_name: str
    customer_last_name: str
    customer_id: Optional[str] = None
    items_count: int
    created_at: Optional[datetime]


class AdminOrderListResponse(BaseModel):
    data: List[AdminOrderListItem]
    meta: PageMeta


class AdminOrderItem(BaseModel):
    id: str
    variant_id: Optional[str] = None
    product_id: Optional[str] = None
    product_title: str
    sku: str
    quantity: int
    total: float
    unit_price: float
    variant_options: List[VariantOptionOut] = []


class AdminPayment(BaseModel):
    id: str
    provider: str
    method: Optional[str] = None
    amount: float
    currency: str
    status: PaymentStatus
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None


class AdminCustomer(BaseModel):
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AdminOrderDetail(BaseModel):
    """后台订单详情"""
    id: str
    number: str
    status: OrderStatus
    payment_status: PaymentStatus
    fulfillment_status: FulfillmentStatus
    total: float
    currency: str
    totals: OrderTotals
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    billing_address: Optional[Dict[str, Any]] = None
    shipping_address: Optional[Dict[str, Any]] = None
    shipping_method: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    payment: Optional[AdminPayment] = None
    customer: Optional[AdminCustomer] = None
    paid_at: Optional[datetime] = None
    fulfilled_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    items: List[AdminOrderItem]


class UpdateOrderRequest(BaseModel):
    """更新订单状态请求（取值在服务层校验）"""
    status: Optional[str] = Field(None, description="pending / processing / completed / cancelled")
    payment_status: Optional[str] = Field(None, description="pending / paid / failed / refunded")
    fulfillment_status: Optional[str] = Field(None, description="unfulfilled / fulfilled / shipped / delivered")


class SuccessResponse(BaseModel):
    success: bool = True


# ==================== 留言 ====================

class MessageListResponse(BaseModel):
    data: List[ContactMessageOut]
    meta: PageMeta


class DeleteMessagesRequest(BaseModel):
    ids: Optional[List[str]] = Field(None, description="要删除的留言ID列表")


class DeletedCount(BaseModel):
    deleted_count: int


class DeleteMessagesResponse(BaseModel):
    data: DeletedCount


# ==================== 统计 ====================

class UserStats(BaseModel):
    total: int


class ProductStats(BaseModel):
    total: int
    low_stock: int


class OrderStats(BaseModel):
    total: int
    recent: int
    pending: int


class RevenueStats(BaseModel):
    total: float
    currency: str


class StatsResponse(BaseModel):
    users: UserStats
    products: ProductStats
    orders: OrderStats
    revenue: RevenueStats


class RecentOrder(BaseModel):
    id: str
    number: str
    status: OrderStatus
    payment_status: PaymentStatus
    total: float
    currency: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    items_count: int
    created_at: Optional[datetime]


class TopProduct(BaseModel):
    variant_id: str
    product_id: Optional[str] = None
    title: str
    sku: Optional[str] = None
    total_quantity: int
    total_revenue: float
    orders_count: int
    image_url: Optional[str] = None


# ==================== 分析与动态 ====================

class DateRange(BaseModel):
    start: datetime
    end: datetime


class AnalyticsOrders(BaseModel):
    total_orders: int
    total_revenue: float = Field(..., description="已支付订单金额合计")
    paid_orders: int
    pending_orders: int
    completed_orders: int


class OrdersByDay(BaseModel):
    date: str = Field(..., description="日期 YYYY-MM-DD（UTC）")
    count: int
    revenue: float


class AnalyticsResponse(BaseModel):
    period: str
    date_range: DateRange
    orders: AnalyticsOrders
    top_products: List[TopProduct]
    orders_by_day: List[OrdersByDay]


class ActivityItem(BaseModel):
    type: str = Field(..., description="order / user")
    title: str
    description: str
    timestamp: Optional[datetime]


class RegisteredUser(BaseModel):
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    name: str
    registered_at: Optional[datetime]


class ActiveUser(BaseModel):
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    name: str
    order_count: int
    total_spent: float
    last_order_date: Optional[datetime]


class UserActivityResponse(BaseModel):
    recent_registrations: List[RegisteredUser]
    active_users: List[ActiveUser]
