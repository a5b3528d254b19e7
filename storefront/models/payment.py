from sqlalchemy import (
    Column,
    String,
    Numeric,
    TIMESTAMP,
    Enum,
    ForeignKey,
    func,
)
from sqlalchemy.orm import relationship
from storefront.db.base import Base
from storefront.models.order import PaymentStatus, _enum_values
from storefront.models.user import new_id


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)

    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="订单ID",
    )

    provider = Column(String(32), nullable=False, comment="支付渠道 idram / arca / cash_on_delivery")

    method = Column(String(32), nullable=True)

    amount = Column(Numeric(12, 2), nullable=False)

    currency = Column(String(3), nullable=False)

    status = Column(
        Enum(PaymentStatus, name="payment_record_status_type", values_callable=_enum_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    card_last4 = Column(String(4), nullable=True)

    card_brand = Column(String(32), nullable=True)

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    order = relationship("Order", back_populates="payments")
