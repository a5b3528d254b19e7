"""购物车 API 路由（需要登录）"""

from fastapi import APIRouter, Body, Path
import logging

from storefront.core.dependencies import UserDep, CartServiceDep
from storefront.core.errors import ProblemError
from storefront.models.user import User
from storefront.services.cart_service import CartService
from storefront.schemas.base import PROBLEM_RESPONSES
from storefront.schemas.cart import AddCartItemRequest, UpdateCartItemRequest, CartOut

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/cart",
    tags=["购物车"],
    responses=PROBLEM_RESPONSES,
)


@router.get("", response_model=CartOut, summary="查看购物车")
async def get_cart(
    user: User = UserDep,
    service: CartService = CartServiceDep,
):
    try:
        return service.view(user.id)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询购物车失败: {str(e)}")
        raise ProblemError.internal()


@router.post(
    "/items",
    response_model=CartOut,
    summary="加入购物车",
    description="""加入指定规格，已在购物车中的规格累加数量。

    **注意：**
    - 价格快照取当前规格价格
    - 累加后的数量超过库存返回 422
    """,
)
async def add_item(
    request: AddCartItemRequest = Body(...),
    user: User = UserDep,
    service: CartService = CartServiceDep,
):
    try:
        return service.add_item(user.id, request.variant_id, request.quantity)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"加入购物车失败: {str(e)}")
        raise ProblemError.internal()


@router.patch("/items/{item_id}", response_model=CartOut, summary="修改数量")
async def update_item(
    item_id: str = Path(..., description="购物车条目ID"),
    request: UpdateCartItemRequest = Body(...),
    user: User = UserDep,
    service: CartService = CartServiceDep,
):
    try:
        return service.update_item(user.id, item_id, request.quantity)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"修改购物车失败: item_id={item_id}, error={str(e)}")
        raise ProblemError.internal()


@router.delete("/items/{item_id}", response_model=CartOut, summary="移出购物车")
async def remove_item(
    item_id: str = Path(..., description="购物车条目ID"),
    user: User = UserDep,
    service: CartService = CartServiceDep,
):
    try:
        return service.remove_item(user.id, item_id)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"移出购物车失败: item_id={item_id}, error={str(e)}")
        raise ProblemError.internal()
