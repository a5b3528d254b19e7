"""订单 API 路由：结算与订单历史"""

from fastapi import APIRouter, Body, Path
from typing import Optional
import logging

from storefront.core.dependencies import CurrentUserDep, UserDep, OrdersServiceDep
from storefront.core.errors import ProblemError
from storefront.models.user import User
from storefront.services.orders_service import OrdersService
from storefront.schemas.base import PROBLEM_RESPONSES, ProblemDetail
from storefront.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    OrderListResponse,
    OrderDetail,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/orders",
    tags=["订单"],
    responses=PROBLEM_RESPONSES,
)


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=201,
    summary="结算下单",
    description="""根据登录用户购物车或游客提交的商品创建订单。

    **流程：**
    - 校验联系方式、配送方式和支付方式
    - 校验每个商品的库存
    - 在同一个事务中创建订单、支付记录并扣减库存

    **错误：**
    - 400 购物车为空或参数不合法
    - 404 商品规格不存在
    - 409 订单号冲突，请重试
    - 422 库存不足
    """,
    responses={
        409: {"model": ProblemDetail, "description": "订单号冲突"},
        422: {"model": ProblemDetail, "description": "库存不足"},
    },
)
async def checkout(
    request: CheckoutRequest = Body(..., description="结算请求"),
    user: Optional[User] = CurrentUserDep,
    service: OrdersService = OrdersServiceDep,
):
    """结算（登录用户和游客均可）"""
    try:
        return service.checkout(request.model_dump(), user_id=user.id if user else None)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"结算失败: {str(e)}")
        raise ProblemError.internal(title="Checkout failed")


@router.get(
    "",
    response_model=OrderListResponse,
    summary="我的订单",
)
async def list_orders(
    user: User = UserDep,
    service: OrdersService = OrdersServiceDep,
):
    """当前用户的订单列表（按创建时间倒序）"""
    try:
        return service.list(user.id)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询订单列表失败: {str(e)}")
        raise ProblemError.internal()


@router.get(
    "/{number}",
    response_model=OrderDetail,
    summary="订单详情",
)
async def get_order(
    number: str = Path(..., description="订单号", examples=["250101-00042"]),
    user: User = UserDep,
    service: OrdersService = OrdersServiceDep,
):
    try:
        return service.find_by_number(number, user.id)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询订单失败: number={number}, error={str(e)}")
        raise ProblemError.internal()
