import enum

from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    Text,
    TIMESTAMP,
    JSON,
    Enum,
    ForeignKey,
    Index,
    func,
)
from sqlalchemy.orm import relationship
from storefront.db.base import Base
from storefront.models.user import new_id


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# 1️ 订单状态枚举

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class FulfillmentStatus(str, enum.Enum):
    UNFULFILLED = "unfulfilled"
    FULFILLED = "fulfilled"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class ShippingMethod(str, enum.Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class PaymentMethod(str, enum.Enum):
    IDRAM = "idram"
    ARCA = "arca"
    CASH_ON_DELIVERY = "cash_on_delivery"


# 2️ 订单表

class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)

    # 人类可读订单号 YYMMDD-NNNNN
    number = Column(
        String(20),
        nullable=False,
        unique=True,
        comment="订单号",
    )

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="下单用户（游客为空）",
    )

    status = Column(
        Enum(OrderStatus, name="order_status_type", values_callable=_enum_values),
        nullable=False,
        default=OrderStatus.PENDING,
    )

    payment_status = Column(
        Enum(PaymentStatus, name="payment_status_type", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    fulfillment_status = Column(
        Enum(FulfillmentStatus, name="fulfillment_status_type", values_callable=_enum_values),
        nullable=False,
        default=FulfillmentStatus.UNFULFILLED,
    )

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_amount = Column(Numeric(12, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    currency = Column(String(3), nullable=False, default="AMD")

    # 下单时的联系方式快照
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(32), nullable=True)
    customer_locale = Column(String(8), nullable=True)

    shipping_method = Column(String(32), nullable=True)
    shipping_address = Column(JSON, nullable=True)
    billing_address = Column(JSON, nullable=True)
    tracking_number = Column(String(64), nullable=True)

    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    paid_at = Column(TIMESTAMP(timezone=True), nullable=True)
    fulfilled_at = Column(TIMESTAMP(timezone=True), nullable=True)
    cancelled_at = Column(TIMESTAMP(timezone=True), nullable=True)

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user = relationship("User", back_populates="orders")

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
    )

    payments = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Payment.created_at",
    )

    events = relationship(
        "OrderEvent",
        back_populates="order",
        cascade="all, delete-orphan",
    )


# 3️ 订单明细（下单时的商品快照，商品数据之后变化不影响历史订单）

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)

    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    variant_id = Column(
        String(36),
        ForeignKey("product_variants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    product_title = Column(String(255), nullable=False)
    variant_title = Column(String(255), nullable=True)
    sku = Column(String(64), nullable=False, default="")

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False, comment="成交单价")
    total = Column(Numeric(12, 2), nullable=False, comment="行合计")

    image_url = Column(String(1024), nullable=True)

    order = relationship("Order", back_populates="items")
    variant = relationship("ProductVariant")


# 4️ 订单事件

class OrderEvent(Base):
    __tablename__ = "order_events"

    id = Column(String(36), primary_key=True, default=new_id)

    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type = Column(String(64), nullable=False, comment="order_created / order_updated")

    data = Column(JSON, nullable=True)

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    order = relationship("Order", back_populates="events")


# 5️ 高频查询优化索引

Index(
    "idx_orders_status_created",
    Order.status,
    Order.created_at.desc(),
)
