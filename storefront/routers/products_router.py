"""商品目录 API 路由"""

from fastapi import APIRouter, Body, Path, Query
from typing import Optional
import logging

from storefront.core.dependencies import ProductsServiceDep
from storefront.core.errors import ProblemError
from storefront.services.products_service import ProductsService
from storefront.schemas.base import PROBLEM_RESPONSES
from storefront.schemas.product import (
    ProductListResponse,
    ProductSchema,
    ResolveVariantRequest,
    ResolveVariantResponse,
    StockResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/products",
    tags=["商品"],
    responses=PROBLEM_RESPONSES,
)


@router.get(
    "",
    response_model=ProductListResponse,
    summary="商品列表",
    description="""已发布商品列表。

    **筛选：**
    - search 匹配标题、副标题和规格 SKU（不区分大小写）
    - min_price / max_price 按最低规格价格过滤
    - filter=new 最近30天上架，filter=featured 推荐商品
    """,
)
async def list_products(
    page: int = Query(1, ge=1, description="页码"),
    limit: int = Query(24, ge=1, le=100, description="每页数量"),
    search: Optional[str] = Query(None, description="搜索关键词"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    filter: Optional[str] = Query(None, description="new / featured"),
    sort: str = Query("created_at", description="created_at / price_asc / price_desc"),
    service: ProductsService = ProductsServiceDep,
):
    try:
        return service.list_products(
            page=page,
            limit=limit,
            search=search,
            min_price=min_price,
            max_price=max_price,
            filter=filter,
            sort=sort,
        )
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询商品列表失败: {str(e)}")
        raise ProblemError.internal()


# 必须在 /{slug} 之前声明
@router.get(
    "/variants/{variant_id}/stock",
    response_model=StockResponse,
    summary="查询规格库存",
    description="""查询指定规格的可用库存数量。

    **缓存策略：**
    - 首先查询Redis缓存
    - 缓存未命中则查询数据库
    - Redis 不可用时直接查询数据库
    """,
)
async def get_variant_stock(
    variant_id: str = Path(..., description="规格ID"),
    service: ProductsService = ProductsServiceDep,
):
    """查询规格可用库存（带缓存优化）"""
    try:
        stock = service.get_variant_stock(variant_id)
        return {"variant_id": variant_id, "available_stock": stock}
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询库存失败: {str(e)}")
        raise ProblemError.internal()


@router.get("/{slug}", response_model=ProductSchema, summary="商品详情")
async def get_product(
    slug: str = Path(..., description="商品 slug"),
    service: ProductsService = ProductsServiceDep,
):
    try:
        return service.find_by_slug(slug)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询商品失败: slug={slug}, error={str(e)}")
        raise ProblemError.internal()


@router.post(
    "/{slug}/variants/resolve",
    response_model=ResolveVariantResponse,
    summary="按属性匹配规格",
    description="""根据商品页已选的颜色、尺码和其他属性找出最合适的规格。

    优先返回完全匹配且带图片的规格，其次任意完全匹配，
    再按颜色/尺码部分匹配，最后退回有库存的规格。
    """,
)
async def resolve_variant(
    slug: str = Path(..., description="商品 slug"),
    request: ResolveVariantRequest = Body(...),
    service: ProductsService = ProductsServiceDep,
):
    try:
        return service.resolve_variant(slug, request.color, request.size, request.attributes)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"匹配规格失败: slug={slug}, error={str(e)}")
        raise ProblemError.internal()
