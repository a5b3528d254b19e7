from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ContactRequest(BaseModel):
    """联系表单（必填校验在服务层完成）"""
    name: Optional[str] = Field(None, description="姓名")
    email: Optional[str] = Field(None, description="邮箱")
    subject: Optional[str] = Field(None, description="主题")
    message: Optional[str] = Field(None, description="内容")


class ContactMessageOut(BaseModel):
    id: str
    name: str
    email: str
    subject: str
    message: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ContactResponse(BaseModel):
    data: ContactMessageOut
