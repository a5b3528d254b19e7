"""商品目录服务单元测试"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.core.errors import ProblemError
from storefront.services.products_service import ProductsService


class TestProductCatalog:
    """商品列表与详情测试类"""

    @pytest.fixture
    def catalog(self, make_product):
        old = datetime.now(timezone.utc) - timedelta(days=90)
        return {
            "tee": make_product(
                slug="red-tee", title="Red Tee", media=["/tee.jpg"], featured=True,
                variants=[
                    {"sku": "TEE-S", "price": "4000", "stock": 0},
                    {"sku": "TEE-M", "price": "4500", "stock": 3},
                ],
            ),
            "mug": make_product(
                slug="mug", title="Coffee Mug", subtitle="Ceramic", created_at=old,
                variants=[{"sku": "MUG-1", "price": "2500", "stock": 0}],
            ),
            "hoodie": make_product(
                slug="hoodie", title="Hoodie", media=[{"url": "/hoodie.jpg"}], created_at=old,
                variants=[{"sku": "HOOD-XL", "price": "15000", "stock": 1}],
            ),
            "draft": make_product(slug="draft", title="Draft", published=False),
        }

    def test_list_excludes_unpublished(self, db_session, catalog):
        result = ProductsService(db_session).list_products()

        slugs = {p["slug"] for p in result["data"]}
        assert slugs == {"red-tee", "mug", "hoodie"}
        assert result["meta"] == {"total": 3, "page": 1, "limit": 24, "total_pages": 1}

    def test_list_item_shape(self, db_session, catalog):
        result = ProductsService(db_session).list_products(search="red")

        assert len(result["data"]) == 1
        item = result["data"][0]
        assert item["price"] == Decimal("4000")
        assert item["in_stock"] is True
        assert item["image_url"] == "/tee.jpg"
        assert item["featured"] is True

    def test_search_matches_subtitle_and_sku(self, db_session, catalog):
        service = ProductsService(db_session)
        assert [p["slug"] for p in service.list_products(search="ceramic")["data"]] == ["mug"]
        assert [p["slug"] for p in service.list_products(search="hood-xl")["data"]] == ["hoodie"]

    def test_price_range_and_sort(self, db_session, catalog):
        service = ProductsService(db_session)

        result = service.list_products(min_price=3000, max_price=20000, sort="price_desc")
        assert [p["slug"] for p in result["data"]] == ["hoodie", "red-tee"]

        result = service.list_products(sort="price_asc")
        assert [p["slug"] for p in result["data"]] == ["mug", "red-tee", "hoodie"]

    def test_filter_new_and_featured(self, db_session, catalog):
        service = ProductsService(db_session)
        assert [p["slug"] for p in service.list_products(filter="new")["data"]] == ["red-tee"]
        assert [p["slug"] for p in service.list_products(filter="featured")["data"]] == ["red-tee"]

    def test_pagination(self, db_session, catalog):
        result = ProductsService(db_session).list_products(page=2, limit=2, sort="price_asc")
        assert [p["slug"] for p in result["data"]] == ["hoodie"]
        assert result["meta"]["total_pages"] == 2

    def test_invalid_sort(self, db_session, catalog):
        with pytest.raises(ProblemError) as exc_info:
            ProductsService(db_session).list_products(sort="popularity")
        assert exc_info.value.status == 400

    def test_find_by_slug_hides_unpublished_variants(self, db_session, make_product):
        make_product(slug="jacket", variants=[
            {"sku": "J-1", "price": "100", "stock": 1},
            {"sku": "J-2", "price": "100", "stock": 1, "published": False},
        ])
        db_session.expunge_all()

        product = ProductsService(db_session).find_by_slug("jacket")
        assert [v.sku for v in product.variants] == ["J-1"]

    def test_find_by_slug_not_found(self, db_session, catalog):
        with pytest.raises(ProblemError) as exc_info:
            ProductsService(db_session).find_by_slug("draft")
        assert exc_info.value.status == 404


class TestResolveVariant:
    """商品页规格匹配测试类"""

    def test_resolve_exact(self, db_session, make_product):
        make_product(slug="polo", variants=[
            {"sku": "POLO-RED-M", "price": "100", "stock": 2, "options": [("color", "Red"), ("size", "M")]},
            {"sku": "POLO-RED-L", "price": "100", "stock": 2, "options": [("color", "Red"), ("size", "L")],
             "image_url": "/polo-red-l.jpg"},
        ])

        result = ProductsService(db_session).resolve_variant("polo", "red", "l")
        assert result["variant"].sku == "POLO-RED-L"
        assert result["exact"] is True

    def test_resolve_partial(self, db_session, make_product):
        make_product(slug="polo", variants=[
            {"sku": "POLO-RED-M", "price": "100", "stock": 2, "options": [("color", "Red"), ("size", "M")]},
        ])

        result = ProductsService(db_session).resolve_variant("polo", "red", "xxl")
        assert result["variant"].sku == "POLO-RED-M"
        assert result["exact"] is False


class TestVariantStock:
    """规格库存缓存测试类"""

    def test_cache_hit(self, db_session, mock_redis):
        mock_redis.get.return_value = "7"

        assert ProductsService(db_session, mock_redis).get_variant_stock("v-1") == 7
        mock_redis.get.assert_called_once_with("stock:variant:v-1")
        mock_redis.setex.assert_not_called()

    def test_cache_miss(self, db_session, mock_redis, make_product):
        product = make_product(variants=[{"sku": "S", "price": "100", "stock": 12}])
        variant_id = product.variants[0].id

        assert ProductsService(db_session, mock_redis).get_variant_stock(variant_id) == 12
        mock_redis.setex.assert_called_once_with(f"stock:variant:{variant_id}", 300, 12)

    def test_unknown_variant(self, db_session, mock_redis):
        assert ProductsService(db_session, mock_redis).get_variant_stock("missing") == 0
        mock_redis.setex.assert_called_once_with("stock:variant:missing", 300, 0)

    def test_without_redis(self, db_session, make_product):
        product = make_product(variants=[{"sku": "S", "price": "100", "stock": 4}])
        assert ProductsService(db_session, None).get_variant_stock(product.variants[0].id) == 4
