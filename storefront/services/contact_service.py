"""联系表单服务"""

import logging
import re
from math import ceil
from typing import List

from sqlalchemy import select, func, delete
from sqlalchemy.orm import Session

from storefront.core.errors import ProblemError
from storefront.models.contact_message import ContactMessage

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
REQUIRED_FIELDS = ("name", "email", "subject", "message")


class ContactService:
    def __init__(self, db: Session):
        self.db = db

    def submit(self, data: dict) -> ContactMessage:
        """保存一条联系留言（所有字段必填，去除首尾空白）"""
        cleaned = {}
        for field in REQUIRED_FIELDS:
            value = data.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ProblemError.validation(f"Field '{field}' is required")
            cleaned[field] = value.strip()

        if not EMAIL_RE.match(cleaned["email"]):
            raise ProblemError.validation("Invalid email format")

        message = ContactMessage(**cleaned)
        self.db.add(message)
        self.db.commit()
        logger.info(f"联系留言已保存: id={message.id}")
        return message

    def list_messages(self, page: int = 1, limit: int = 20) -> dict:
        """后台留言列表（按创建时间倒序）"""
        total = self.db.execute(select(func.count()).select_from(ContactMessage)).scalar_one()
        messages = self.db.execute(
            select(ContactMessage)
            .order_by(ContactMessage.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()

        return {
            "data": messages,
            "meta": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": ceil(total / limit) if limit else 0,
            },
        }

    def delete_messages(self, ids: List[str]) -> int:
        if not ids:
            raise ProblemError.validation("Field 'ids' is required and must be a non-empty array")

        result = self.db.execute(delete(ContactMessage).where(ContactMessage.id.in_(ids)))
        self.db.commit()
        logger.info(f"已删除 {result.rowcount} 条留言")
        return result.rowcount
