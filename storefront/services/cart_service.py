"""登录用户购物车服务"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session, selectinload

from storefront.core.config import settings
from storefront.core.errors import ProblemError
from storefront.models.cart import Cart, CartItem
from storefront.models.product import ProductVariant

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, db: Session):
        self.db = db

    def get_or_create_cart(self, user_id: str) -> Cart:
        cart = self.db.execute(
            select(Cart)
            .where(Cart.user_id == user_id)
            .options(
                selectinload(Cart.items).selectinload(CartItem.variant).selectinload(ProductVariant.options),
                selectinload(Cart.items).selectinload(CartItem.product),
            )
        ).scalar_one_or_none()

        if cart is None:
            cart = Cart(user_id=user_id)
            self.db.add(cart)
            self.db.commit()
            logger.info(f"创建购物车: user_id={user_id}, cart_id={cart.id}")
        return cart

    def view(self, user_id: str) -> dict:
        return self._serialize(self.get_or_create_cart(user_id))

    def add_item(self, user_id: str, variant_id: str, quantity: int) -> dict:
        """加入购物车，已存在的规格累加数量"""
        cart = self.get_or_create_cart(user_id)
        variant = self._get_variant(variant_id)

        item = next((i for i in cart.items if i.variant_id == variant_id), None)
        new_quantity = quantity + (item.quantity if item else 0)
        self._check_stock(variant, new_quantity)

        if item is None:
            item = CartItem(
                product_id=variant.product_id,
                variant_id=variant.id,
                quantity=new_quantity,
                price_snapshot=variant.price,
            )
            cart.items.append(item)
        else:
            item.quantity = new_quantity
        cart.updated_at = datetime.now(timezone.utc)

        self.db.commit()
        logger.info(f"加入购物车: cart_id={cart.id}, variant_id={variant_id}, quantity={new_quantity}")
        return self._serialize(cart)

    def update_item(self, user_id: str, item_id: str, quantity: int) -> dict:
        cart = self.get_or_create_cart(user_id)
        item = self._get_item(cart, item_id)
        self._check_stock(item.variant, quantity)

        item.quantity = quantity
        cart.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        return self._serialize(cart)

    def remove_item(self, user_id: str, item_id: str) -> dict:
        cart = self.get_or_create_cart(user_id)
        item = self._get_item(cart, item_id)

        cart.items.remove(item)
        cart.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"移出购物车: cart_id={cart.id}, item_id={item_id}")
        return self._serialize(cart)

    def cleanup_abandoned_carts(self, batch_size: int = 500, ttl_days: int = None) -> int:
        """批量删除长时间未更新的购物车

        Args:
            batch_size: 批处理大小，默认500条
            ttl_days: 过期天数，默认取配置 CART_TTL_DAYS

        Returns:
            删除的购物车数量
        """
        ttl_days = settings.CART_TTL_DAYS if ttl_days is None else ttl_days
        cutoff = datetime.now(timezone.utc) - timedelta(days=ttl_days)
        total_cleaned = 0

        while True:
            cart_ids = self.db.execute(
                select(Cart.id)
                .where(Cart.updated_at <= cutoff)
                .limit(batch_size)
            ).scalars().all()

            if not cart_ids:
                break

            self.db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
            self.db.execute(delete(Cart).where(Cart.id.in_(cart_ids)))
            self.db.commit()

            total_cleaned += len(cart_ids)
            logger.info(f"已完成批次清理，累计清理 {total_cleaned} 个购物车")

            if len(cart_ids) < batch_size:
                break

        logger.info(f"清理任务完成，总共清理 {total_cleaned} 个过期购物车")
        return total_cleaned

    def count_abandoned_carts(self, ttl_days: int = None) -> int:
        ttl_days = settings.CART_TTL_DAYS if ttl_days is None else ttl_days
        cutoff = datetime.now(timezone.utc) - timedelta(days=ttl_days)
        return self.db.execute(
            select(func.count()).select_from(Cart).where(Cart.updated_at <= cutoff)
        ).scalar_one()

    def _get_variant(self, variant_id: str) -> ProductVariant:
        variant = self.db.get(ProductVariant, variant_id)
        if variant is None or not variant.published:
            raise ProblemError.not_found("Product variant not found", f"Variant {variant_id} not found")
        return variant

    @staticmethod
    def _get_item(cart: Cart, item_id: str) -> CartItem:
        item = next((i for i in cart.items if i.id == item_id), None)
        if item is None:
            raise ProblemError.not_found("Cart item not found", f"Cart item {item_id} not found")
        return item

    @staticmethod
    def _check_stock(variant: ProductVariant, quantity: int) -> None:
        if variant.stock < quantity:
            raise ProblemError.insufficient_stock(
                f"Insufficient stock. Available: {variant.stock}, Requested: {quantity}"
            )

    @staticmethod
    def _serialize(cart: Cart) -> dict:
        items = []
        subtotal = Decimal("0")
        for item in cart.items:
            price = Decimal(str(item.price_snapshot))
            line_total = price * item.quantity
            subtotal += line_total
            items.append({
                "id": item.id,
                "product_id": item.product_id,
                "variant_id": item.variant_id,
                "product_title": item.product.title if item.product else "Unknown Product",
                "variant_title": item.variant.title if item.variant else None,
                "sku": item.variant.sku if item.variant else None,
                "quantity": item.quantity,
                "price": price,
                "total": line_total,
                "available_stock": item.variant.stock if item.variant else 0,
            })
        return {
            "id": cart.id,
            "items": items,
            "items_count": sum(i["quantity"] for i in items),
            "subtotal": subtotal,
            "currency": settings.CURRENCY,
        }
