"""后台管理 API 路由（需要 admin 角色）"""

from fastapi import APIRouter, Body, Path, Query
from datetime import date
from typing import List, Optional
import logging

from storefront.core.dependencies import AdminDep, AdminServiceDep, ContactServiceDep
from storefront.core.errors import ProblemError
from storefront.services.admin_service import AdminService
from storefront.services.contact_service import ContactService
from storefront.schemas.base import PROBLEM_RESPONSES, ProblemDetail
from storefront.schemas.admin import (
    AdminOrderListResponse,
    AdminOrderDetail,
    UpdateOrderRequest,
    SuccessResponse,
    MessageListResponse,
    DeleteMessagesRequest,
    DeleteMessagesResponse,
    StatsResponse,
    RecentOrder,
    TopProduct,
    AnalyticsResponse,
    ActivityItem,
    UserActivityResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin",
    tags=["后台管理"],
    dependencies=[AdminDep],
    responses={
        **PROBLEM_RESPONSES,
        401: {"model": ProblemDetail, "description": "未登录"},
        403: {"model": ProblemDetail, "description": "需要管理员权限"},
    },
)


# ==================== 订单 ====================

@router.get(
    "/orders",
    response_model=AdminOrderListResponse,
    summary="订单列表",
    description="""后台订单列表。

    **筛选：**
    - status / payment_status 按状态过滤
    - search 匹配订单号、客户邮箱/电话、用户姓名/邮箱/电话
    - sort_by 支持 created_at / total
    """,
)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    service: AdminService = AdminServiceDep,
):
    try:
        return service.get_orders(
            page=page,
            limit=limit,
            status=status,
            payment_status=payment_status,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"后台查询订单失败: {str(e)}")
        raise ProblemError.internal()


@router.get("/orders/{order_id}", response_model=AdminOrderDetail, summary="订单详情")
async def get_order(
    order_id: str = Path(..., description="订单ID"),
    service: AdminService = AdminServiceDep,
):
    try:
        return service.get_order_by_id(order_id)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"后台查询订单详情失败: order_id={order_id}, error={str(e)}")
        raise ProblemError.internal()


@router.put(
    "/orders/{order_id}",
    response_model=AdminOrderDetail,
    summary="更新订单状态",
    description="""更新订单状态、支付状态或履约状态。

    **时间记录：**
    - 变为 completed 时记录 fulfilled_at
    - 变为 cancelled 时记录 cancelled_at
    - 支付状态变为 paid 时记录 paid_at
    """,
)
async def update_order(
    order_id: str = Path(..., description="订单ID"),
    request: UpdateOrderRequest = Body(...),
    service: AdminService = AdminServiceDep,
):
    try:
        return service.update_order(order_id, request.model_dump(exclude_none=True))
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"更新订单失败: order_id={order_id}, error={str(e)}")
        raise ProblemError.internal(title="Failed to update order")


@router.delete(
    "/orders/{order_id}",
    response_model=SuccessResponse,
    summary="删除订单",
    responses={409: {"model": ProblemDetail, "description": "存在关联数据无法删除"}},
)
async def delete_order(
    order_id: str = Path(..., description="订单ID"),
    service: AdminService = AdminServiceDep,
):
    try:
        service.delete_order(order_id)
        return {"success": True}
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"删除订单失败: order_id={order_id}, error={str(e)}")
        raise ProblemError.internal(title="Failed to delete order")


# ==================== 留言 ====================

@router.get("/messages", response_model=MessageListResponse, summary="留言列表")
async def list_messages(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: ContactService = ContactServiceDep,
):
    try:
        return service.list_messages(page=page, limit=limit)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询留言失败: {str(e)}")
        raise ProblemError.internal()


@router.delete("/messages", response_model=DeleteMessagesResponse, summary="批量删除留言")
async def delete_messages(
    request: DeleteMessagesRequest = Body(...),
    service: ContactService = ContactServiceDep,
):
    try:
        count = service.delete_messages(request.ids or [])
        return {"data": {"deleted_count": count}}
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"删除留言失败: {str(e)}")
        raise ProblemError.internal()


# ==================== 统计 ====================

@router.get("/stats", response_model=StatsResponse, summary="看板统计")
async def get_stats(service: AdminService = AdminServiceDep):
    try:
        return service.get_stats()
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询统计失败: {str(e)}")
        raise ProblemError.internal()


@router.get("/stats/recent-orders", response_model=List[RecentOrder], summary="最近订单")
async def get_recent_orders(
    limit: int = Query(5, ge=1, le=50),
    service: AdminService = AdminServiceDep,
):
    try:
        return service.get_recent_orders(limit)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询最近订单失败: {str(e)}")
        raise ProblemError.internal()


@router.get("/stats/top-products", response_model=List[TopProduct], summary="热销商品")
async def get_top_products(
    limit: int = Query(5, ge=1, le=50),
    service: AdminService = AdminServiceDep,
):
    try:
        return service.get_top_products(limit)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询热销商品失败: {str(e)}")
        raise ProblemError.internal()


@router.get(
    "/stats/analytics",
    response_model=AnalyticsResponse,
    summary="订单分析",
    description="""按时间段统计订单。

    **period：**
    - day / week / month / year：截至今天（UTC）
    - custom：使用 start_date 与 end_date，缺少任一日期时按 week 处理

    营收只统计已支付订单；top_products 按营收排序，最多 10 条。
    """,
)
async def get_analytics(
    period: str = Query("week", description="day / week / month / year / custom"),
    start_date: Optional[date] = Query(None, description="custom 起始日期 YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, description="custom 结束日期 YYYY-MM-DD"),
    service: AdminService = AdminServiceDep,
):
    try:
        return service.get_analytics(period=period, start_date=start_date, end_date=end_date)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询订单分析失败: period={period}, error={str(e)}")
        raise ProblemError.internal()


@router.get("/stats/activity", response_model=List[ActivityItem], summary="最近动态")
async def get_activity(
    limit: int = Query(10, ge=1, le=50),
    service: AdminService = AdminServiceDep,
):
    try:
        return service.get_activity(limit)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询最近动态失败: {str(e)}")
        raise ProblemError.internal()


@router.get("/stats/user-activity", response_model=UserActivityResponse, summary="用户动态")
async def get_user_activity(
    limit: int = Query(10, ge=1, le=50),
    service: AdminService = AdminServiceDep,
):
    try:
        return service.get_user_activity(limit)
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"查询用户动态失败: {str(e)}")
        raise ProblemError.internal()
