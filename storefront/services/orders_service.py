"""订单服务：结算与订单查询"""

import logging
import random
import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from redis import Redis
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.core.config import settings
from storefront.core.errors import ProblemError, empty_cart_error
from storefront.core.redis import stock_cache_key
from storefront.models.cart import Cart, CartItem, GUEST_CART_ID
from storefront.models.order import (
    Order,
    OrderItem,
    OrderEvent,
    OrderStatus,
    PaymentStatus,
    FulfillmentStatus,
    ShippingMethod,
    PaymentMethod,
)
from storefront.models.payment import Payment
from storefront.models.product import ProductVariant

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[0-9]{8,15}$")

# 需要跳转到第三方支付页的支付方式
REDIRECT_PAYMENT_METHODS = {PaymentMethod.IDRAM.value, PaymentMethod.ARCA.value}


def generate_order_number(now: Optional[datetime] = None) -> str:
    """生成订单号：YYMMDD-NNNNN"""
    now = now or datetime.now()
    return f"{now:%y%m%d}-{random.randint(0, 99999):05d}"


def calculate_totals(lines: List[dict], shipping_method: str) -> dict:
    """计算订单金额（折扣与税费暂为0）"""
    subtotal = sum((line["price"] * line["quantity"] for line in lines), Decimal("0"))
    discount = Decimal("0")
    shipping = Decimal(settings.DELIVERY_SHIPPING_FEE) if shipping_method == ShippingMethod.DELIVERY.value else Decimal("0")
    tax = Decimal("0")
    return {
        "subtotal": subtotal,
        "discount": discount,
        "shipping": shipping,
        "tax": tax,
        "total": subtotal - discount + shipping + tax,
    }


def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class OrdersService:
    """订单核心服务类"""

    def __init__(self, db: Session, redis: Redis = None):
        self.db = db
        self.redis = redis

    # ==================== 结算 ====================

    def checkout(self, data: dict, user_id: Optional[str] = None) -> dict:
        """创建订单（结算）

        校验联系方式 → 解析购物车 → 校验库存 → 计算金额 →
        在同一个事务中创建订单、支付记录并扣减库存。
        """
        email = (data.get("email") or "").strip()
        phone = (data.get("phone") or "").strip()
        shipping_method = data.get("shipping_method") or ShippingMethod.PICKUP.value
        payment_method = data.get("payment_method") or PaymentMethod.IDRAM.value
        shipping_address = data.get("shipping_address")
        cart_id = data.get("cart_id")

        self._validate_contact(email, phone)
        self._validate_shipping(shipping_method, shipping_address)
        if payment_method not in {m.value for m in PaymentMethod}:
            raise ProblemError.validation(
                f"Invalid payment method. Must be one of: {', '.join(m.value for m in PaymentMethod)}"
            )

        use_user_cart = bool(user_id and cart_id and cart_id != GUEST_CART_ID)
        if use_user_cart:
            cart, lines = self._resolve_user_cart(cart_id, user_id)
        elif data.get("items"):
            cart, lines = None, self._resolve_guest_items(data["items"])
        else:
            raise empty_cart_error()

        if not lines:
            raise empty_cart_error()

        totals = calculate_totals(lines, shipping_method)
        number = generate_order_number()

        try:
            order = Order(
                number=number,
                user_id=user_id,
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                fulfillment_status=FulfillmentStatus.UNFULFILLED,
                subtotal=totals["subtotal"],
                discount_amount=totals["discount"],
                shipping_amount=totals["shipping"],
                tax_amount=totals["tax"],
                total=totals["total"],
                currency=settings.CURRENCY,
                customer_email=email,
                customer_phone=phone,
                customer_locale=data.get("locale") or settings.DEFAULT_LOCALE,
                shipping_method=shipping_method,
                shipping_address=shipping_address,
                billing_address=shipping_address,
                notes=data.get("notes"),
            )
            order.items = [
                OrderItem(
                    variant_id=line["variant"].id,
                    product_title=line["product_title"],
                    variant_title=line["variant_title"],
                    sku=line["sku"],
                    quantity=line["quantity"],
                    price=line["price"],
                    total=line["price"] * line["quantity"],
                    image_url=line["image_url"],
                )
                for line in lines
            ]
            order.events = [
                OrderEvent(
                    type="order_created",
                    data={
                        "source": "user" if user_id else "guest",
                        "payment_method": payment_method,
                        "shipping_method": shipping_method,
                    },
                )
            ]
            self.db.add(order)

            # 行级锁后用数据库中的最新库存再次确认并扣减（同一规格的多行合并计算）
            requested = {}
            for line in lines:
                variant_id = line["variant"].id
                requested[variant_id] = requested.get(variant_id, 0) + line["quantity"]

            for variant_id in sorted(requested):
                variant = self.db.execute(
                    select(ProductVariant)
                    .where(ProductVariant.id == variant_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one()
                if variant.stock < requested[variant_id]:
                    raise ProblemError.insufficient_stock(
                        f"Insufficient stock. Available: {variant.stock}, Requested: {requested[variant_id]}"
                    )
                variant.stock -= requested[variant_id]

            payment = Payment(
                order=order,
                provider=payment_method,
                method=payment_method,
                amount=totals["total"],
                currency=settings.CURRENCY,
                status=PaymentStatus.PENDING,
            )
            self.db.add(payment)

            # 登录用户结算成功后清空购物车
            if cart is not None:
                self.db.delete(cart)

            self.db.commit()
        except ProblemError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"结算失败（唯一约束冲突）: number={number}, error={e.orig}")
            raise ProblemError.conflict("Order number already exists, please try again")
        except Exception as e:
            self.db.rollback()
            logger.error(f"结算失败: {str(e)}")
            raise

        logger.info(f"订单创建成功: number={order.number}, total={order.total}, items={len(lines)}")

        # 失效规格库存缓存
        if self.redis:
            for variant_id in requested:
                self.redis.delete(stock_cache_key(variant_id))
                logger.debug(f"Cache invalidated for variant {variant_id}")

        return {
            "order": {
                "id": order.id,
                "number": order.number,
                "status": order.status,
                "payment_status": order.payment_status,
                "total": order.total,
                "currency": order.currency,
            },
            "payment": {
                "provider": payment.provider,
                "payment_url": None,
                "expires_at": None,
            },
            "next_action": "redirect_to_payment" if payment_method in REDIRECT_PAYMENT_METHODS else "view_order",
        }

    @staticmethod
    def _validate_contact(email: str, phone: str) -> None:
        if not email or not phone:
            raise ProblemError.validation("Email and phone are required")
        if not EMAIL_RE.match(email):
            raise ProblemError.validation("Invalid email format")
        if not PHONE_RE.match(phone):
            raise ProblemError.validation("Invalid phone number")

    @staticmethod
    def _validate_shipping(shipping_method: str, shipping_address: Optional[dict]) -> None:
        if shipping_method not in {m.value for m in ShippingMethod}:
            raise ProblemError.validation(
                f"Invalid shipping method. Must be one of: {', '.join(m.value for m in ShippingMethod)}"
            )
        if shipping_method != ShippingMethod.DELIVERY.value:
            return
        address = shipping_address or {}
        for field in ("address", "city"):
            value = address.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ProblemError.validation(f"Shipping {field} is required for delivery")

    def _resolve_user_cart(self, cart_id: str, user_id: str):
        cart = self.db.execute(
            select(Cart)
            .where(Cart.id == cart_id, Cart.user_id == user_id)
            .options(
                selectinload(Cart.items).selectinload(CartItem.variant).selectinload(ProductVariant.options),
                selectinload(Cart.items).selectinload(CartItem.product),
            )
        ).scalar_one_or_none()

        if cart is None or not cart.items:
            raise empty_cart_error()

        lines = []
        for item in cart.items:
            variant = item.variant
            product = item.product
            if variant.stock < item.quantity:
                raise ProblemError.insufficient_stock(
                    f'Product "{product.title}" - insufficient stock. '
                    f"Available: {variant.stock}, Requested: {item.quantity}"
                )
            lines.append(self._line(variant, product, item.quantity, _as_decimal(item.price_snapshot)))
        return cart, lines

    def _resolve_guest_items(self, items: List[dict]) -> List[dict]:
        lines = []
        for item in items:
            product_id = item.get("product_id")
            variant_id = item.get("variant_id")
            quantity = item.get("quantity")

            if not product_id or not variant_id or not quantity or quantity <= 0:
                raise ProblemError.validation("Each item must have productId, variantId, and quantity")

            variant = self.db.execute(
                select(ProductVariant)
                .where(ProductVariant.id == variant_id)
                .options(selectinload(ProductVariant.product), selectinload(ProductVariant.options))
            ).scalar_one_or_none()

            if variant is None or variant.product_id != product_id:
                raise ProblemError.not_found(
                    "Product variant not found",
                    f"Variant {variant_id} not found for product {product_id}",
                )

            if variant.stock < quantity:
                raise ProblemError.insufficient_stock(
                    f"Insufficient stock. Available: {variant.stock}, Requested: {quantity}"
                )

            lines.append(self._line(variant, variant.product, quantity, _as_decimal(variant.price)))
        return lines

    @staticmethod
    def _line(variant: ProductVariant, product, quantity: int, price: Decimal) -> dict:
        return {
            "variant": variant,
            "quantity": quantity,
            "price": price,
            "product_title": product.title if product else "Unknown Product",
            "variant_title": variant.title,
            "sku": variant.sku or "",
            "image_url": product.image_url if product else None,
        }

    # ==================== 订单查询 ====================

    def list(self, user_id: str) -> dict:
        """用户订单列表（按创建时间倒序）"""
        orders = self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc())
        ).scalars().all()

        return {
            "data": [
                {
                    "id": order.id,
                    "number": order.number,
                    "status": order.status,
                    "payment_status": order.payment_status,
                    "fulfillment_status": order.fulfillment_status,
                    "total": order.total,
                    "currency": order.currency,
                    "created_at": order.created_at,
                    "items_count": len(order.items),
                }
                for order in orders
            ]
        }

    def find_by_number(self, order_number: str, user_id: str) -> dict:
        """按订单号查询当前用户的订单详情"""
        order = self.db.execute(
            select(Order)
            .where(Order.number == order_number, Order.user_id == user_id)
            .options(
                selectinload(Order.items).selectinload(OrderItem.variant).selectinload(ProductVariant.options),
            )
        ).scalar_one_or_none()

        if order is None:
            raise ProblemError.not_found(
                "Order not found",
                f"Order with number '{order_number}' not found",
            )

        return {
            "id": order.id,
            "number": order.number,
            "status": order.status,
            "payment_status": order.payment_status,
            "fulfillment_status": order.fulfillment_status,
            "items": [
                {
                    "variant_id": item.variant_id or "",
                    "product_title": item.product_title,
                    "variant_title": item.variant_title or "",
                    "sku": item.sku,
                    "quantity": item.quantity,
                    "price": item.price,
                    "total": item.total,
                    "image_url": item.image_url,
                    "variant_options": [
                        {"attribute_key": opt.attribute_key, "value": opt.value, "value_id": opt.value_id}
                        for opt in (item.variant.options if item.variant else [])
                    ],
                }
                for item in order.items
            ],
            "totals": {
                "subtotal": order.subtotal,
                "discount": order.discount_amount,
                "shipping": order.shipping_amount,
                "tax": order.tax_amount,
                "total": order.total,
                "currency": order.currency,
            },
            "customer": {
                "email": order.customer_email,
                "phone": order.customer_phone,
            },
            "shipping_address": order.shipping_address,
            "shipping_method": order.shipping_method or ShippingMethod.PICKUP.value,
            "tracking_number": order.tracking_number,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }
