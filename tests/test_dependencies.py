"""依赖注入单元测试"""
from datetime import datetime, timezone

import pytest
from unittest.mock import Mock, patch
from sqlalchemy.orm import Session
from redis import Redis

from storefront.core.dependencies import (
    get_db,
    get_redis,
    get_current_user,
    require_user,
    require_admin,
    get_orders_service,
    get_products_service,
)
from storefront.core.errors import ProblemError
from storefront.models.user import User
from storefront.services.orders_service import OrdersService
from storefront.services.products_service import ProductsService


class TestDependencies:
    """依赖注入测试类"""

    def test_get_db(self):
        """测试数据库会话依赖"""
        with patch('storefront.core.dependencies.SessionLocal') as mock_session_local:
            db_mock = Mock(spec=Session)
            mock_session_local.return_value = db_mock

            gen = get_db()
            db = next(gen)

            assert db == db_mock
            mock_session_local.assert_called_once()

            gen.close()
            db_mock.close.assert_called_once()

    def test_get_redis_success(self):
        """测试 Redis 连接成功"""
        with patch('storefront.core.dependencies.redis_client') as mock_redis_client:
            mock_redis_client.ping.return_value = True

            redis_conn = get_redis()

            assert redis_conn == mock_redis_client
            mock_redis_client.ping.assert_called_once()

    def test_get_redis_failure(self):
        """测试 Redis 连接失败"""
        with patch('storefront.core.dependencies.redis_client') as mock_redis_client:
            mock_redis_client.ping.side_effect = Exception("连接失败")

            # 连接失败应该返回 None
            assert get_redis() is None

    def test_service_factories(self):
        db_mock = Mock(spec=Session)
        redis_mock = Mock(spec=Redis)

        orders = get_orders_service(db=db_mock, redis=redis_mock)
        assert isinstance(orders, OrdersService)
        assert orders.db == db_mock
        assert orders.redis == redis_mock

        products = get_products_service(db=db_mock, redis=None)
        assert isinstance(products, ProductsService)
        assert products.redis is None


class TestAuthDependencies:
    """身份认证依赖测试类"""

    def test_bearer_token_resolves_user(self, db_session, customer):
        user, token = customer
        assert get_current_user(f"Bearer {token}", db_session).id == user.id
        assert get_current_user(f"bearer {token}", db_session).id == user.id

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "Bearer unknown"])
    def test_anonymous(self, db_session, header):
        assert get_current_user(header, db_session) is None

    def test_deleted_user_is_anonymous(self, db_session, customer):
        user, token = customer
        user.deleted_at = datetime.now(timezone.utc)
        db_session.commit()

        assert get_current_user(f"Bearer {token}", db_session) is None

    def test_require_user(self):
        with pytest.raises(ProblemError) as exc_info:
            require_user(None)
        assert exc_info.value.status == 401

    def test_require_admin(self):
        customer = User(roles=["customer"])
        admin = User(roles=["customer", "admin"])

        with pytest.raises(ProblemError) as exc_info:
            require_admin(customer)
        assert exc_info.value.status == 403
        assert require_admin(admin) is admin
