"""RFC 7807 Problem Details 错误模型

服务层抛出 ProblemError，路由边界和全局异常处理器负责把它转换成
application/problem+json 响应。
"""

from typing import Any, Dict, Optional

from storefront.core.config import settings

PROBLEM_CONTENT_TYPE = "application/problem+json"


def problem_type(slug: str) -> str:
    return f"{settings.PROBLEM_BASE_URL}/{slug}"


class ProblemError(Exception):
    """携带 status/type/title/detail 的业务异常"""

    def __init__(self, status: int, type: str, title: str, detail: Optional[str] = None):
        super().__init__(detail or title)
        self.status = status
        self.type = type
        self.title = title
        self.detail = detail

    def to_dict(self, instance: Optional[str] = None) -> Dict[str, Any]:
        body = {
            "type": self.type,
            "title": self.title,
            "status": self.status,
            "detail": self.detail,
        }
        if instance:
            body["instance"] = instance
        return body

    def __repr__(self) -> str:
        return f"ProblemError(status={self.status}, title={self.title!r}, detail={self.detail!r})"

    # 常用错误构造
    @classmethod
    def validation(cls, detail: str, title: str = "Validation Error") -> "ProblemError":
        return cls(400, problem_type("validation-error"), title, detail)

    @classmethod
    def unauthorized(cls, detail: str = "Authentication required") -> "ProblemError":
        return cls(401, problem_type("unauthorized"), "Unauthorized", detail)

    @classmethod
    def forbidden(cls, detail: str = "Admin access required") -> "ProblemError":
        return cls(403, problem_type("forbidden"), "Forbidden", detail)

    @classmethod
    def not_found(cls, title: str, detail: str) -> "ProblemError":
        return cls(404, problem_type("not-found"), title, detail)

    @classmethod
    def conflict(cls, detail: str, title: str = "Conflict") -> "ProblemError":
        return cls(409, problem_type("conflict"), title, detail)

    @classmethod
    def insufficient_stock(cls, detail: str) -> "ProblemError":
        return cls(422, problem_type("validation-error"), "Insufficient stock", detail)

    @classmethod
    def internal(cls, detail: Optional[str] = None, title: str = "Internal Server Error") -> "ProblemError":
        return cls(500, problem_type("internal-error"), title, detail or "An error occurred")


def empty_cart_error() -> ProblemError:
    return ProblemError.validation("Cannot checkout with an empty cart", title="Cart is empty")
