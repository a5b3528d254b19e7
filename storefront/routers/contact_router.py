"""联系表单 API 路由"""

from fastapi import APIRouter, Body
import logging

from storefront.core.dependencies import ContactServiceDep
from storefront.core.errors import ProblemError
from storefront.services.contact_service import ContactService
from storefront.schemas.base import PROBLEM_RESPONSES
from storefront.schemas.contact import ContactRequest, ContactResponse

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/contact",
    tags=["联系我们"],
    responses=PROBLEM_RESPONSES,
)


@router.post("", response_model=ContactResponse, status_code=201, summary="提交留言")
async def submit_contact(
    request: ContactRequest = Body(...),
    service: ContactService = ContactServiceDep,
):
    """保存联系留言，所有字段必填"""
    try:
        message = service.submit(request.model_dump())
        return {"data": message}
    except ProblemError:
        raise
    except Exception as e:
        logger.error(f"保存留言失败: {str(e)}")
        raise ProblemError.internal()
