"""联系表单服务单元测试"""
import pytest

from storefront.core.errors import ProblemError
from storefront.models.contact_message import ContactMessage
from storefront.services.contact_service import ContactService

VALID = {
    "name": "  Aram  ",
    "email": "aram@example.com",
    "subject": "Delivery",
    "message": "When will my order arrive?",
}


class TestContactService:
    """联系留言测试类"""

    def test_submit_trims_fields(self, db_session):
        message = ContactService(db_session).submit(dict(VALID))

        assert message.id is not None
        assert message.name == "Aram"
        assert db_session.query(ContactMessage).count() == 1

    @pytest.mark.parametrize("field", ["name", "email", "subject", "message"])
    def test_required_fields(self, db_session, field):
        data = dict(VALID, **{field: "   "})
        with pytest.raises(ProblemError) as exc_info:
            ContactService(db_session).submit(data)
        assert exc_info.value.status == 400
        assert exc_info.value.detail == f"Field '{field}' is required"

    def test_invalid_email(self, db_session):
        with pytest.raises(ProblemError) as exc_info:
            ContactService(db_session).submit(dict(VALID, email="not-an-email"))
        assert exc_info.value.detail == "Invalid email format"

    def test_list_and_delete_messages(self, db_session):
        service = ContactService(db_session)
        ids = [service.submit(dict(VALID, subject=f"Question {i}")).id for i in range(3)]

        page = service.list_messages(page=1, limit=2)
        assert len(page["data"]) == 2
        assert page["meta"] == {"total": 3, "page": 1, "limit": 2, "total_pages": 2}

        assert service.delete_messages(ids[:2] + ["missing"]) == 2
        assert db_session.query(ContactMessage).count() == 1

    def test_delete_requires_ids(self, db_session):
        with pytest.raises(ProblemError) as exc_info:
            ContactService(db_session).delete_messages([])
        assert exc_info.value.detail == "Field 'ids' is required and must be a non-empty array"
