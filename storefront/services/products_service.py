"""商品目录服务"""

import logging
from datetime import datetime, timedelta, timezone
from math import ceil
from typing import Dict, Optional

from redis import Redis
from sqlalchemy import select, func, or_, exists
from sqlalchemy.orm import Session, selectinload

from storefront.core.config import settings
from storefront.core.errors import ProblemError
from storefront.core.redis import stock_cache_key
from storefront.models.product import Product, ProductVariant
from storefront.services import variant_matching

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("created_at", "price_asc", "price_desc")


class ProductsService:
    def __init__(self, db: Session, redis: Redis = None):
        self.db = db
        self.redis = redis

    def list_products(
        self,
        page: int = 1,
        limit: int = 24,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        filter: Optional[str] = None,
        sort: str = "created_at",
    ) -> dict:
        """已发布商品列表（搜索、价格区间、新品/推荐、排序、分页）"""
        min_variant_price = (
            select(
                ProductVariant.product_id.label("product_id"),
                func.min(ProductVariant.price).label("min_price"),
                func.max(ProductVariant.stock).label("max_stock"),
            )
            .where(ProductVariant.published.is_(True))
            .group_by(ProductVariant.product_id)
            .subquery()
        )

        stmt = (
            select(Product, min_variant_price.c.min_price, min_variant_price.c.max_stock)
            .outerjoin(min_variant_price, min_variant_price.c.product_id == Product.id)
            .where(Product.published.is_(True), Product.deleted_at.is_(None))
        )

        if search and search.strip():
            term = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Product.title.ilike(term),
                    Product.subtitle.ilike(term),
                    exists().where(
                        ProductVariant.product_id == Product.id,
                        ProductVariant.sku.ilike(term),
                    ),
                )
            )

        if min_price is not None:
            stmt = stmt.where(min_variant_price.c.min_price >= min_price)
        if max_price is not None:
            stmt = stmt.where(min_variant_price.c.min_price <= max_price)

        if filter == "new":
            stmt = stmt.where(Product.created_at >= datetime.now(timezone.utc) - timedelta(days=30))
        elif filter == "featured":
            stmt = stmt.where(Product.featured.is_(True))

        if sort not in SORT_OPTIONS:
            raise ProblemError.validation(f"Invalid sort. Must be one of: {', '.join(SORT_OPTIONS)}")
        if sort == "price_asc":
            stmt = stmt.order_by(min_variant_price.c.min_price.asc(), Product.created_at.desc())
        elif sort == "price_desc":
            stmt = stmt.order_by(min_variant_price.c.min_price.desc(), Product.created_at.desc())
        else:
            stmt = stmt.order_by(Product.created_at.desc())

        total = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        rows = self.db.execute(stmt.offset((page - 1) * limit).limit(limit)).all()

        return {
            "data": [
                {
                    "id": product.id,
                    "slug": product.slug,
                    "title": product.title,
                    "image_url": product.image_url,
                    "price": price,
                    "in_stock": bool(max_stock and max_stock > 0),
                    "featured": product.featured,
                    "created_at": product.created_at,
                }
                for product, price, max_stock in rows
            ],
            "meta": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": ceil(total / limit) if limit else 0,
            },
        }

    def find_by_slug(self, slug: str) -> Product:
        """按 slug 查询已发布商品，只加载已发布规格"""
        product = self.db.execute(
            select(Product)
            .where(
                Product.slug == slug,
                Product.published.is_(True),
                Product.deleted_at.is_(None),
            )
            .options(
                selectinload(Product.variants.and_(ProductVariant.published.is_(True)))
                .selectinload(ProductVariant.options)
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if product is None:
            raise ProblemError.not_found("Product not found", f"Product with slug '{slug}' does not exist")

        return product

    def resolve_variant(
        self,
        slug: str,
        color: Optional[str] = None,
        size: Optional[str] = None,
        attributes: Optional[Dict[str, str]] = None,
    ) -> dict:
        """按商品页已选属性找出最合适的规格"""
        product = self.find_by_slug(slug)
        variant = variant_matching.find_variant_by_all_attributes(
            product.variants, color, size, attributes
        )
        exact = variant is not None and variant_matching.variant_matches(variant, color, size, attributes)
        logger.debug(f"规格匹配: slug={slug}, variant={variant.id if variant else None}, exact={exact}")
        return {"variant": variant, "exact": exact}

    def get_variant_stock(self, variant_id: str) -> int:
        """查询规格可用库存（带缓存）"""
        cache_key = stock_cache_key(variant_id)

        # 先查缓存
        if self.redis:
            cached = self.redis.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for variant {variant_id}")
                return int(cached)

        # 缓存未命中，查询数据库
        stock = self.db.execute(
            select(ProductVariant.stock).where(ProductVariant.id == variant_id)
        ).scalar_one_or_none()
        available = stock or 0

        if self.redis:
            self.redis.setex(cache_key, settings.STOCK_CACHE_TTL, available)
            logger.debug(f"Cache set for variant {variant_id}: {available}")

        return available
