"""测试配置和 fixtures"""
import secrets
from decimal import Decimal

import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from redis import Redis

import storefront.models  # noqa: F401  注册所有模型
from storefront.db.base import Base
from storefront.core.dependencies import get_db, get_redis
from storefront.main import app
from storefront.models.product import Product, ProductVariant, VariantOption
from storefront.models.user import User, ApiToken


@pytest.fixture
def db_session():
    """内存 SQLite 数据库会话（所有连接共享同一个库）"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    db = SessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def mock_redis():
    """创建模拟 Redis 客户端"""
    redis_mock = Mock(spec=Redis)
    redis_mock.get.return_value = None
    redis_mock.setex.return_value = True
    redis_mock.delete.return_value = 1
    return redis_mock


@pytest.fixture
def make_product(db_session):
    """创建商品及其规格

    variants 中每一项支持 sku / price / stock / image_url / published / options，
    options 为 [(attribute_key, value)] 或 [(attribute_key, value, value_id)]。
    """
    def _make(slug="basic-tee", title="Basic Tee", variants=None, **fields):
        product = Product(slug=slug, title=title, **fields)
        for position, variant_data in enumerate(variants or [{"sku": f"{slug}-1", "price": "5000", "stock": 10}]):
            variant = ProductVariant(
                sku=variant_data.get("sku"),
                price=Decimal(str(variant_data.get("price", "5000"))),
                stock=variant_data.get("stock", 10),
                image_url=variant_data.get("image_url"),
                published=variant_data.get("published", True),
                position=position,
            )
            for opt_position, opt in enumerate(variant_data.get("options", [])):
                variant.options.append(VariantOption(
                    attribute_key=opt[0],
                    value=opt[1],
                    value_id=opt[2] if len(opt) > 2 else None,
                    position=opt_position,
                ))
            product.variants.append(variant)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def make_user(db_session):
    """创建用户并签发令牌，返回 (user, token)"""
    def _make(email="buyer@example.com", roles=None, **fields):
        user = User(email=email, roles=roles or ["customer"], **fields)
        token = ApiToken(key=secrets.token_hex(20))
        user.tokens.append(token)
        db_session.add(user)
        db_session.commit()
        return user, token.key
    return _make


@pytest.fixture
def customer(make_user):
    return make_user(email="buyer@example.com", phone="+37499123456", first_name="Anna", last_name="Petrosyan")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", roles=["customer", "admin"])


@pytest.fixture
def customer_headers(customer):
    return {"Authorization": f"Bearer {customer[1]}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {admin[1]}"}


@pytest.fixture
def client(db_session, mock_redis):
    """测试客户端（数据库和 Redis 依赖替换为测试实例）"""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_redis] = lambda: mock_redis
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
