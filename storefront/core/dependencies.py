"""依赖注入配置模块"""

import logging
from typing import Optional

from fastapi import Depends, Header

# 数据库会话依赖
from storefront.db.session import SessionLocal
from sqlalchemy.orm import Session

# Redis 依赖
from storefront.core.redis import redis_client, async_redis

from storefront.core.errors import ProblemError
from storefront.models.user import ApiToken, User
from storefront.services.orders_service import OrdersService
from storefront.services.cart_service import CartService
from storefront.services.products_service import ProductsService
from storefront.services.contact_service import ContactService
from storefront.services.admin_service import AdminService

logger = logging.getLogger(__name__)


def get_redis():
    """获取同步 Redis 客户端，不可用时返回 None（缓存降级）"""
    try:
        redis_client.ping()
    except Exception as e:
        logger.warning(f"Redis 不可用，跳过缓存: {e}")
        return None
    return redis_client

def get_async_redis():
    """获取异步 Redis 客户端"""
    return async_redis

def get_db() -> Session:
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ==================== 身份认证 ====================

def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """解析 Authorization: Bearer <token>，未登录返回 None"""
    if not authorization:
        return None

    scheme, _, key = authorization.partition(" ")
    if scheme.lower() != "bearer" or not key.strip():
        return None

    token = db.get(ApiToken, key.strip())
    if token is None or token.user is None or token.user.deleted_at is not None:
        return None
    return token.user


def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None:
        raise ProblemError.unauthorized()
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        raise ProblemError.forbidden()
    return user


# ==================== 服务实例 ====================

def get_orders_service(
    db: Session = Depends(get_db),
    redis = Depends(get_redis),
) -> OrdersService:
    """获取订单服务实例（依赖注入）"""
    return OrdersService(db=db, redis=redis)


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db=db)


def get_products_service(
    db: Session = Depends(get_db),
    redis = Depends(get_redis),
) -> ProductsService:
    return ProductsService(db=db, redis=redis)


def get_contact_service(db: Session = Depends(get_db)) -> ContactService:
    return ContactService(db=db)


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    return AdminService(db=db)


# 常用的依赖注入别名
DatabaseDep = Depends(get_db)
RedisDep = Depends(get_redis)
AsyncRedisDep = Depends(get_async_redis)
CurrentUserDep = Depends(get_current_user)
UserDep = Depends(require_user)
AdminDep = Depends(require_admin)
OrdersServiceDep = Depends(get_orders_service)
CartServiceDep = Depends(get_cart_service)
ProductsServiceDep = Depends(get_products_service)
ContactServiceDep = Depends(get_contact_service)
AdminServiceDep = Depends(get_admin_service)
