import uuid

from sqlalchemy import (
    Column,
    String,
    TIMESTAMP,
    ForeignKey,
    JSON,
    func,
)
from sqlalchemy.orm import relationship
from storefront.db.base import Base


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)

    email = Column(
        String(255),
        nullable=True,
        unique=True,
        comment="登录邮箱",
    )

    phone = Column(String(32), nullable=True, comment="手机号")

    first_name = Column(String(100), nullable=True)

    last_name = Column(String(100), nullable=True)

    # 角色列表，包含 admin 即可访问后台
    roles = Column(
        JSON,
        nullable=False,
        default=lambda: ["customer"],
        comment="角色列表",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    deleted_at = Column(
        TIMESTAMP(timezone=True),
        nullable=True,
        comment="软删除时间",
    )

    tokens = relationship(
        "ApiToken",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    orders = relationship("Order", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return "admin" in (self.roles or [])

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class ApiToken(Base):
    """Bearer 访问令牌（一个用户可持有多个）"""

    __tablename__ = "api_tokens"

    key = Column(String(64), primary_key=True, comment="令牌值")

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    user = relationship("User", back_populates="tokens")
