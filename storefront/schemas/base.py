from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ProblemDetail(BaseModel):
    """RFC 7807 错误响应"""
    type: str = Field(..., description="错误类型URI")
    title: str = Field(..., description="错误标题")
    status: int = Field(..., description="HTTP 状态码")
    detail: Optional[str] = Field(None, description="错误详情")
    instance: Optional[str] = Field(None, description="出错的请求地址")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="字段校验错误（仅请求校验失败时返回）")


class PageMeta(BaseModel):
    """分页信息"""
    total: int
    page: int
    limit: int
    total_pages: int


class HealthCheckResponse(BaseModel):
    """健康检查响应"""
    status: str = "healthy"
    service: str = "storefront-api"
    version: str = "1.0.0"


# 路由统一声明的错误响应
PROBLEM_RESPONSES = {
    400: {"model": ProblemDetail, "description": "请求参数错误"},
    404: {"model": ProblemDetail, "description": "资源未找到"},
    500: {"model": ProblemDetail, "description": "服务器内部错误"},
}
