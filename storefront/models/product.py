from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    Boolean,
    Text,
    TIMESTAMP,
    JSON,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship
from storefront.db.base import Base
from storefront.models.user import new_id


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)

    slug = Column(
        String(255),
        nullable=False,
        unique=True,
        comment="商品URL标识",
    )

    title = Column(
        String(255),
        nullable=False,
        comment="商品名称",
    )

    subtitle = Column(String(255), nullable=True)

    description = Column(Text, nullable=True)

    # 图片列表：字符串URL或 {"url": ...} / {"src": ...}
    media = Column(JSON, nullable=True, comment="商品图片")

    published = Column(Boolean, nullable=False, default=True)

    featured = Column(Boolean, nullable=False, default=False)

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

    deleted_at = Column(TIMESTAMP(timezone=True), nullable=True)

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.position",
    )

    @property
    def image_url(self):
        """第一张商品图片"""
        if not isinstance(self.media, list) or not self.media:
            return None
        first = self.media[0]
        if isinstance(first, str):
            return first
        if isinstance(first, dict):
            return first.get("url") or first.get("src")
        return None


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(String(36), primary_key=True, default=new_id)

    product_id = Column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="商品ID",
    )

    sku = Column(String(64), nullable=True, comment="规格SKU")

    price = Column(Numeric(12, 2), nullable=False, comment="售价")

    stock = Column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="可售库存",
    )

    image_url = Column(String(1024), nullable=True)

    published = Column(Boolean, nullable=False, default=True)

    position = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")

    options = relationship(
        "VariantOption",
        back_populates="variant",
        cascade="all, delete-orphan",
        order_by="VariantOption.position",
    )

    __table_args__ = (
        CheckConstraint(
            "stock >= 0",
            name="ck_variant_stock_non_negative",
        ),
    )

    @property
    def title(self):
        """由规格选项拼出的标题，例如 "color: red, size: m" """
        parts = [f"{opt.attribute_key}: {opt.value}" for opt in self.options]
        return ", ".join(parts) or None


class VariantOption(Base):
    """规格选项（有序的 key/value 对）"""

    __tablename__ = "variant_options"

    id = Column(String(36), primary_key=True, default=new_id)

    variant_id = Column(
        String(36),
        ForeignKey("product_variants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    attribute_key = Column(String(64), nullable=False, comment="属性键，如 color / size")

    value = Column(String(255), nullable=True, comment="属性值")

    value_id = Column(String(64), nullable=True, comment="属性值ID")

    position = Column(Integer, nullable=False, default=0)

    variant = relationship("ProductVariant", back_populates="options")


# 低库存统计
Index(
    "idx_product_variants_stock",
    ProductVariant.stock,
)
