from sqlalchemy import (
    Column,
    String,
    Text,
    TIMESTAMP,
    Index,
    func,
)
from storefront.db.base import Base
from storefront.models.user import new_id


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(String(36), primary_key=True, default=new_id)

    name = Column(String(255), nullable=False)

    email = Column(String(255), nullable=False)

    subject = Column(String(255), nullable=False)

    message = Column(Text, nullable=False)

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


Index(
    "idx_contact_messages_created_desc",
    ContactMessage.created_at.desc(),
)
