"""购物车服务单元测试"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.core.errors import ProblemError
from storefront.models.cart import Cart, CartItem
from storefront.services.cart_service import CartService


class TestCartService:
    """购物车服务测试类"""

    def test_view_creates_empty_cart(self, db_session, customer):
        user, _ = customer
        cart = CartService(db_session).view(user.id)

        assert cart["items"] == []
        assert cart["items_count"] == 0
        assert cart["subtotal"] == Decimal("0")
        assert cart["currency"] == "AMD"
        assert db_session.query(Cart).filter_by(user_id=user.id).count() == 1

    def test_add_item_merges_quantity(self, db_session, customer, make_product):
        user, _ = customer
        product = make_product(variants=[{"sku": "MERGE", "price": "1200", "stock": 5}])
        variant_id = product.variants[0].id
        service = CartService(db_session)

        service.add_item(user.id, variant_id, 1)
        cart = service.add_item(user.id, variant_id, 2)

        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 3
        assert cart["items"][0]["price"] == Decimal("1200")
        assert cart["subtotal"] == Decimal("3600")
        assert cart["items_count"] == 3

    def test_add_item_over_stock(self, db_session, customer, make_product):
        user, _ = customer
        product = make_product(variants=[{"sku": "FEW", "price": "100", "stock": 2}])
        service = CartService(db_session)
        service.add_item(user.id, product.variants[0].id, 2)

        with pytest.raises(ProblemError) as exc_info:
            service.add_item(user.id, product.variants[0].id, 1)
        assert exc_info.value.status == 422

    def test_add_unknown_variant(self, db_session, customer):
        user, _ = customer
        with pytest.raises(ProblemError) as exc_info:
            CartService(db_session).add_item(user.id, "missing", 1)
        assert exc_info.value.status == 404

    def test_add_unpublished_variant(self, db_session, customer, make_product):
        user, _ = customer
        product = make_product(variants=[{"sku": "HIDDEN", "price": "100", "stock": 2, "published": False}])
        with pytest.raises(ProblemError) as exc_info:
            CartService(db_session).add_item(user.id, product.variants[0].id, 1)
        assert exc_info.value.status == 404

    def test_update_and_remove_item(self, db_session, customer, make_product):
        user, _ = customer
        product = make_product(variants=[{"sku": "UPD", "price": "500", "stock": 10}])
        service = CartService(db_session)
        item_id = service.add_item(user.id, product.variants[0].id, 1)["items"][0]["id"]

        cart = service.update_item(user.id, item_id, 4)
        assert cart["items"][0]["quantity"] == 4
        assert cart["subtotal"] == Decimal("2000")

        cart = service.remove_item(user.id, item_id)
        assert cart["items"] == []
        assert db_session.query(CartItem).count() == 0

    def test_update_missing_item(self, db_session, customer):
        user, _ = customer
        with pytest.raises(ProblemError) as exc_info:
            CartService(db_session).update_item(user.id, "missing", 1)
        assert exc_info.value.status == 404


class TestAbandonedCartCleanup:
    """过期购物车清理测试类"""

    def _cart(self, db_session, make_user, email, age_days, product):
        user, _ = make_user(email=email)
        cart = Cart(user_id=user.id, updated_at=datetime.now(timezone.utc) - timedelta(days=age_days))
        cart.items.append(CartItem(product_id=product.id, variant_id=product.variants[0].id,
                                   quantity=1, price_snapshot=Decimal("100")))
        db_session.add(cart)
        db_session.commit()
        return cart

    def test_cleanup_removes_only_stale_carts(self, db_session, make_user, make_product):
        product = make_product()
        self._cart(db_session, make_user, "old1@example.com", 45, product)
        self._cart(db_session, make_user, "old2@example.com", 31, product)
        fresh = self._cart(db_session, make_user, "fresh@example.com", 1, product)
        service = CartService(db_session)

        assert service.count_abandoned_carts() == 2
        assert service.cleanup_abandoned_carts(batch_size=1) == 2

        remaining = db_session.query(Cart).all()
        assert [c.id for c in remaining] == [fresh.id]
        assert db_session.query(CartItem).count() == 1

    def test_cleanup_custom_ttl(self, db_session, make_user, make_product):
        product = make_product()
        self._cart(db_session, make_user, "week@example.com", 8, product)

        service = CartService(db_session)
        assert service.cleanup_abandoned_carts(ttl_days=30) == 0
        assert service.cleanup_abandoned_carts(ttl_days=7) == 1
