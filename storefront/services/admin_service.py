"""后台管理服务：订单管理、看板统计与订单分析"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from math import ceil
from typing import Optional

from sqlalchemy import select, func, or_, and_, desc, asc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.core.config import settings
from storefront.core.errors import ProblemError
from storefront.models.order import (
    Order,
    OrderItem,
    OrderEvent,
    OrderStatus,
    PaymentStatus,
    FulfillmentStatus,
)
from storefront.models.product import Product, ProductVariant
from storefront.models.user import User

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "created_at": Order.created_at,
    "total": Order.total,
}

# 允许更新的状态字段及其取值
STATUS_FIELDS = (
    ("status", OrderStatus),
    ("payment_status", PaymentStatus),
    ("fulfillment_status", FulfillmentStatus),
)


def _allowed(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


def _parse_enum(enum_cls, field: str, value: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ProblemError.validation(f"Invalid {field}. Must be one of: {_allowed(enum_cls)}")


def _order_not_found(order_id: str) -> ProblemError:
    return ProblemError.not_found("Order not found", f"Order with id '{order_id}' does not exist")


# 分析时间段对应的回溯天数，custom 使用请求中的起止日期
ANALYTICS_PERIODS = {
    "day": 0,
    "week": 7,
    "month": 30,
    "year": 365,
}
ANALYTICS_TOP_LIMIT = 10


def analytics_range(
    period: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
):
    """计算分析时间段（UTC），起始日 00:00 到结束日 23:59:59.999999"""
    if period != "custom" and period not in ANALYTICS_PERIODS:
        raise ProblemError.validation(
            f"Invalid period. Must be one of: {', '.join([*ANALYTICS_PERIODS, 'custom'])}"
        )

    today = today or datetime.now(timezone.utc).date()
    if period == "custom" and start_date and end_date:
        if start_date > end_date:
            raise ProblemError.validation("start_date must not be after end_date")
        first, last = start_date, end_date
    else:
        first, last = today - timedelta(days=ANALYTICS_PERIODS.get(period, 7)), today

    return (
        datetime.combine(first, time.min, tzinfo=timezone.utc),
        datetime.combine(last, time.max, tzinfo=timezone.utc),
    )


def _day_key(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def _display_name(user: User, fallback: str) -> str:
    return user.full_name or user.email or user.phone or fallback


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    # ==================== 订单管理 ====================

    def get_orders(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict:
        """订单列表（筛选、搜索、排序、分页）"""
        conditions = []

        if status:
            conditions.append(Order.status == _parse_enum(OrderStatus, "status", status))
        if payment_status:
            conditions.append(Order.payment_status == _parse_enum(PaymentStatus, "payment_status", payment_status))

        if search and search.strip():
            term = f"%{search.strip()}%"
            conditions.append(
                or_(
                    Order.number.ilike(term),
                    Order.customer_email.ilike(term),
                    Order.customer_phone.ilike(term),
                    User.first_name.ilike(term),
                    User.last_name.ilike(term),
                    User.email.ilike(term),
                    User.phone.ilike(term),
                )
            )

        where = and_(*conditions) if conditions else None

        sort_column = SORT_FIELDS.get(sort_by, Order.created_at)
        ordering = asc(sort_column) if sort_order == "asc" else desc(sort_column)

        stmt = select(Order).outerjoin(User, Order.user_id == User.id)
        count_stmt = select(func.count(Order.id)).outerjoin(User, Order.user_id == User.id)
        if where is not None:
            stmt = stmt.where(where)
            count_stmt = count_stmt.where(where)

        logger.info(
            f"查询订单列表: page={page}, limit={limit}, status={status}, "
            f"payment_status={payment_status}, search={search}, sort={sort_by} {sort_order}"
        )

        total = self.db.execute(count_stmt).scalar_one()
        orders = self.db.execute(
            stmt.options(selectinload(Order.items), selectinload(Order.user))
            .order_by(ordering)
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()

        data = []
        for order in orders:
            customer = order.user
            data.append({
                "id": order.id,
                "number": order.number,
                "status": order.status,
                "payment_status": order.payment_status,
                "fulfillment_status": order.fulfillment_status,
                "total": order.total,
                "subtotal": order.subtotal,
                "discount_amount": order.discount_amount,
                "shipping_amount": order.shipping_amount,
                "tax_amount": order.tax_amount,
                "currency": order.currency or settings.CURRENCY,
                "customer_email": (customer.email if customer else None) or order.customer_email or "",
                "customer_phone": (customer.phone if customer else None) or order.customer_phone or "",
                "customer_first_name": (customer.first_name if customer else None) or "",
                "customer_last_name": (customer.last_name if customer else None) or "",
                "customer_id": customer.id if customer else None,
                "items_count": len(order.items),
                "created_at": order.created_at,
            })

        return {
            "data": data,
            "meta": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": ceil(total / limit) if limit else 0,
            },
        }

    def get_order_by_id(self, order_id: str) -> dict:
        """后台订单详情"""
        order = self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(
                selectinload(Order.user),
                selectinload(Order.payments),
                selectinload(Order.items).selectinload(OrderItem.variant).selectinload(ProductVariant.options),
            )
        ).scalar_one_or_none()

        if order is None:
            raise _order_not_found(order_id)

        items = []
        for item in order.items:
            variant = item.variant
            quantity = item.quantity or 0
            total = Decimal(str(item.total or 0))
            unit_price = (total / quantity).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if quantity > 0 else total
            items.append({
                "id": item.id,
                "variant_id": item.variant_id,
                "product_id": variant.product_id if variant else None,
                "product_title": item.product_title or "Unknown Product",
                "sku": (variant.sku if variant else None) or item.sku or "N/A",
                "quantity": quantity,
                "total": total,
                "unit_price": unit_price,
                "variant_options": [
                    {"attribute_key": opt.attribute_key, "value": opt.value, "value_id": opt.value_id}
                    for opt in (variant.options if variant else [])
                ],
            })

        payment = order.payments[0] if order.payments else None
        user = order.user

        return {
            "id": order.id,
            "number": order.number,
            "status": order.status,
            "payment_status": order.payment_status,
            "fulfillment_status": order.fulfillment_status,
            "total": order.total,
            "currency": order.currency or settings.CURRENCY,
            "totals": {
                "subtotal": order.subtotal or 0,
                "discount": order.discount_amount or 0,
                "shipping": order.shipping_amount or 0,
                "tax": order.tax_amount or 0,
                "total": order.total or 0,
                "currency": order.currency or settings.CURRENCY,
            },
            "customer_email": order.customer_email or (user.email if user else None),
            "customer_phone": order.customer_phone or (user.phone if user else None),
            "billing_address": order.billing_address,
            "shipping_address": order.shipping_address,
            "shipping_method": order.shipping_method,
            "tracking_number": order.tracking_number,
            "notes": order.notes,
            "admin_notes": order.admin_notes,
            "payment": {
                "id": payment.id,
                "provider": payment.provider,
                "method": payment.method,
                "amount": payment.amount,
                "currency": payment.currency,
                "status": payment.status,
                "card_last4": payment.card_last4,
                "card_brand": payment.card_brand,
            } if payment else None,
            "customer": {
                "id": user.id,
                "email": user.email,
                "phone": user.phone,
                "first_name": user.first_name,
                "last_name": user.last_name,
            } if user else None,
            "paid_at": order.paid_at,
            "fulfilled_at": order.fulfilled_at,
            "cancelled_at": order.cancelled_at,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
            "items": items,
        }

    def update_order(self, order_id: str, data: dict) -> dict:
        """更新订单状态，并记录 order_updated 事件"""
        order = self.db.get(Order, order_id)
        if order is None:
            raise _order_not_found(order_id)

        updates = {}
        for field, enum_cls in STATUS_FIELDS:
            if data.get(field) is not None:
                updates[field] = _parse_enum(enum_cls, field, data[field])

        previous_status = order.status
        now = datetime.now(timezone.utc)

        # 状态流转时记录时间
        if updates.get("status") == OrderStatus.COMPLETED and order.status != OrderStatus.COMPLETED:
            order.fulfilled_at = now
        if updates.get("status") == OrderStatus.CANCELLED and order.status != OrderStatus.CANCELLED:
            order.cancelled_at = now
        if updates.get("payment_status") == PaymentStatus.PAID and order.payment_status != PaymentStatus.PAID:
            order.paid_at = now

        for field, value in updates.items():
            setattr(order, field, value)

        self.db.add(OrderEvent(
            order_id=order.id,
            type="order_updated",
            data={
                "updated_fields": sorted(updates),
                "previous_status": previous_status.value,
                "new_status": updates.get("status", previous_status).value,
            },
        ))

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"更新订单失败: order_id={order_id}, error={str(e)}")
            raise

        logger.info(f"订单已更新: order_id={order_id}, fields={sorted(updates)}")
        return self.get_order_by_id(order_id)

    def delete_order(self, order_id: str) -> bool:
        """删除订单（明细、支付记录、事件级联删除）"""
        order = self.db.get(Order, order_id)
        if order is None:
            raise _order_not_found(order_id)

        number = order.number
        try:
            self.db.delete(order)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"删除订单失败（外键约束）: order_id={order_id}, error={e.orig}")
            raise ProblemError.conflict(
                "Order has related records that cannot be deleted",
                title="Cannot delete order",
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"删除订单失败: order_id={order_id}, error={str(e)}")
            raise

        logger.info(f"订单已删除: order_id={order_id}, number={number}")
        return True

    # ==================== 看板统计 ====================

    def get_stats(self) -> dict:
        total_users = self.db.execute(
            select(func.count(User.id)).where(User.deleted_at.is_(None))
        ).scalar_one()

        total_products = self.db.execute(
            select(func.count(Product.id)).where(Product.deleted_at.is_(None))
        ).scalar_one()

        low_stock = self.db.execute(
            select(func.count(ProductVariant.id)).where(
                ProductVariant.stock < settings.LOW_STOCK_THRESHOLD,
                ProductVariant.published.is_(True),
            )
        ).scalar_one()

        total_orders = self.db.execute(select(func.count(Order.id))).scalar_one()

        seven_days_ago = datetime.now(timezone.utc) - timedelta(days=7)
        recent_orders = self.db.execute(
            select(func.count(Order.id)).where(Order.created_at >= seven_days_ago)
        ).scalar_one()

        pending_orders = self.db.execute(
            select(func.count(Order.id)).where(Order.status == OrderStatus.PENDING)
        ).scalar_one()

        # 已完成或已支付订单计入营收
        revenue_rows = self.db.execute(
            select(Order.total, Order.currency).where(
                or_(
                    Order.status == OrderStatus.COMPLETED,
                    Order.payment_status == PaymentStatus.PAID,
                )
            )
        ).all()
        revenue = sum((Decimal(str(total)) for total, _ in revenue_rows), Decimal("0"))
        currency = revenue_rows[0][1] if revenue_rows else settings.CURRENCY

        return {
            "users": {"total": total_users},
            "products": {"total": total_products, "low_stock": low_stock},
            "orders": {"total": total_orders, "recent": recent_orders, "pending": pending_orders},
            "revenue": {"total": revenue, "currency": currency},
        }

    def get_recent_orders(self, limit: int = 5) -> list:
        orders = self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc())
            .limit(limit)
        ).scalars().all()

        return [
            {
                "id": order.id,
                "number": order.number,
                "status": order.status,
                "payment_status": order.payment_status,
                "total": order.total,
                "currency": order.currency,
                "customer_email": order.customer_email,
                "customer_phone": order.customer_phone,
                "items_count": len(order.items),
                "created_at": order.created_at,
            }
            for order in orders
        ]

    def get_top_products(self, limit: int = 5) -> list:
        """按营收排序的热销规格"""
        return self._variant_sales(limit)

    def _variant_sales(
        self,
        limit: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list:
        """按规格汇总销量与营收，可限定下单时间范围"""
        total_quantity = func.sum(OrderItem.quantity).label("total_quantity")
        total_revenue = func.sum(OrderItem.total).label("total_revenue")
        query = (
            select(
                OrderItem.variant_id,
                total_quantity,
                total_revenue,
                func.count(func.distinct(OrderItem.order_id)).label("orders_count"),
                func.max(OrderItem.product_title).label("product_title"),
                func.max(OrderItem.sku).label("sku"),
                func.max(OrderItem.image_url).label("image_url"),
            )
            .where(OrderItem.variant_id.is_not(None))
            .group_by(OrderItem.variant_id)
            .order_by(total_revenue.desc(), total_quantity.desc())
            .limit(limit)
        )
        if start is not None and end is not None:
            query = query.join(Order, Order.id == OrderItem.order_id).where(
                Order.created_at >= start,
                Order.created_at <= end,
            )
        rows = self.db.execute(query).all()

        variant_ids = [row.variant_id for row in rows]
        variants = {
            v.id: v
            for v in self.db.execute(
                select(ProductVariant)
                .where(ProductVariant.id.in_(variant_ids))
                .options(selectinload(ProductVariant.product))
            ).scalars().all()
        } if variant_ids else {}

        result = []
        for row in rows:
            variant = variants.get(row.variant_id)
            product = variant.product if variant else None
            result.append({
                "variant_id": row.variant_id,
                "product_id": product.id if product else None,
                "title": product.title if product else row.product_title,
                "sku": (variant.sku if variant else None) or row.sku,
                "total_quantity": int(row.total_quantity or 0),
                "total_revenue": Decimal(str(row.total_revenue or 0)),
                "orders_count": row.orders_count,
                "image_url": (product.image_url if product else None) or row.image_url,
            })
        return result

    # ==================== 分析与动态 ====================

    def get_analytics(
        self,
        period: str = "week",
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict:
        """时间段内的订单分析

        period 为 day / week / month / year / custom，
        custom 缺少起止日期时按 week 处理。营收只统计已支付订单。
        """
        start, end = analytics_range(period, start_date, end_date)

        orders = self.db.execute(
            select(Order).where(Order.created_at >= start, Order.created_at <= end)
        ).scalars().all()

        paid = [o for o in orders if o.payment_status == PaymentStatus.PAID]

        by_day = {}
        for order in orders:
            bucket = by_day.setdefault(_day_key(order.created_at), {"count": 0, "revenue": Decimal("0")})
            bucket["count"] += 1
            if order.payment_status == PaymentStatus.PAID:
                bucket["revenue"] += Decimal(str(order.total))

        return {
            "period": period,
            "date_range": {"start": start, "end": end},
            "orders": {
                "total_orders": len(orders),
                "total_revenue": sum((Decimal(str(o.total)) for o in paid), Decimal("0")),
                "paid_orders": len(paid),
                "pending_orders": sum(1 for o in orders if o.status == OrderStatus.PENDING),
                "completed_orders": sum(1 for o in orders if o.status == OrderStatus.COMPLETED),
            },
            "top_products": self._variant_sales(ANALYTICS_TOP_LIMIT, start, end),
            "orders_by_day": [
                {"date": day, "count": by_day[day]["count"], "revenue": by_day[day]["revenue"]}
                for day in sorted(by_day)
            ],
        }

    def get_activity(self, limit: int = 10) -> list:
        """最近动态：新订单与新注册用户，按时间倒序"""
        orders = self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc())
            .limit(limit)
        ).scalars().all()

        users = self.db.execute(
            select(User)
            .where(User.deleted_at.is_(None))
            .order_by(User.created_at.desc())
            .limit(limit // 2)
        ).scalars().all()

        activities = [
            {
                "type": "order",
                "title": f"New Order #{order.number}",
                "description": f"{len(order.items)} items • {order.total} {order.currency}",
                "timestamp": order.created_at,
            }
            for order in orders
        ]
        activities.extend(
            {
                "type": "user",
                "title": "New User Registration",
                "description": _display_name(user, "New User"),
                "timestamp": user.created_at,
            }
            for user in users
        )
        activities.sort(key=lambda activity: activity["timestamp"], reverse=True)
        return activities[:limit]

    def get_user_activity(self, limit: int = 10) -> dict:
        recent_users = self.db.execute(
            select(User)
            .where(User.deleted_at.is_(None))
            .order_by(User.created_at.desc())
            .limit(limit)
        ).scalars().all()

        # 有订单的用户，按最近下单时间排序
        last_order_at = func.max(Order.created_at).label("last_order_at")
        rows = self.db.execute(
            select(
                User,
                func.count(Order.id).label("order_count"),
                func.sum(Order.total).label("total_spent"),
                last_order_at,
            )
            .join(Order, Order.user_id == User.id)
            .where(User.deleted_at.is_(None))
            .group_by(User.id)
            .order_by(last_order_at.desc())
            .limit(limit)
        ).all()

        return {
            "recent_registrations": [
                {
                    "id": user.id,
                    "email": user.email,
                    "phone": user.phone,
                    "name": _display_name(user, "Unknown"),
                    "registered_at": user.created_at,
                }
                for user in recent_users
            ],
            "active_users": [
                {
                    "id": row.User.id,
                    "email": row.User.email,
                    "phone": row.User.phone,
                    "name": _display_name(row.User, "Unknown"),
                    "order_count": row.order_count,
                    "total_spent": Decimal(str(row.total_spent or 0)),
                    "last_order_date": row.last_order_at,
                }
                for row in rows
            ],
        }
