import pytest
from sqlmodel import select

from barbershop import promote_admin
from barbershop.core import accounts
from barbershop.core.errors import InvalidInput, NotFound
from barbershop.models import AuditLog


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role="admin")


def audit_entries(session, user_id):
    return session.exec(
        select(AuditLog)
        .where(AuditLog.entity_type == "user")
        .where(AuditLog.entity_id == user_id)
        .order_by(AuditLog.id)
    ).all()


class TestUpdateUser:
    def test_role_change_is_audited(self, session, admin, make_user):
        user = make_user()

        accounts.update_user(session, admin.id, user.id, {"role": "admin"})

        assert user.role == "admin"
        [entry] = audit_entries(session, user.id)
        assert entry.action == "user.update"
        assert entry.actor_id == admin.id
        assert entry.before["role"] == "user"
        assert entry.after["role"] == "admin"

    def test_lifting_the_block_clears_the_reason(self, session, admin, make_user):
        user = make_user(is_booking_blocked=True, block_reason="no-shows")

        accounts.update_user(session, admin.id, user.id, {"is_booking_blocked": False})

        assert not user.is_booking_blocked
        assert user.block_reason is None

    def test_block_with_reason(self, session, admin, make_user):
        user = make_user()

        accounts.update_user(
            session, admin.id, user.id, {"is_booking_blocked": True, "block_reason": "rude to staff"}
        )

        assert user.is_booking_blocked
        assert user.block_reason == "rude to staff"

    def test_name_only_leaves_the_rest_alone(self, session, admin, make_user):
        user = make_user(warning_count=1)

        accounts.update_user(session, admin.id, user.id, {"name": "  Jo  "})

        assert user.name == "Jo"
        assert user.role == "user"
        assert user.warning_count == 1

    def test_admin_cannot_demote_themselves(self, session, admin):
        with pytest.raises(InvalidInput):
            accounts.update_user(session, admin.id, admin.id, {"role": "user"})
        assert admin.role == "admin"
        assert audit_entries(session, admin.id) == []

    @pytest.mark.parametrize("changes", [{}, {"role": "owner"}])
    def test_invalid_changes(self, session, admin, make_user, changes):
        user = make_user()
        with pytest.raises(InvalidInput):
            accounts.update_user(session, admin.id, user.id, changes)

    def test_unknown_user(self, session, admin):
        with pytest.raises(NotFound):
            accounts.update_user(session, admin.id, 999, {"role": "admin"})


class TestPromoteAdmin:
    def test_promote_by_email(self, session, make_user):
        user = make_user("someone@example.com")

        accounts.promote_to_admin(session, "  SOMEONE@example.com ")

        assert user.role == "admin"
        [entry] = audit_entries(session, user.id)
        assert entry.actor_id is None

    def test_command_line(self, engine, session, make_user):
        user = make_user("owner@example.com")

        assert promote_admin.main(["owner@example.com"], bind=engine) == 0

        session.refresh(user)
        assert user.role == "admin"

    def test_command_line_unknown_email(self, engine):
        assert promote_admin.main(["nobody@example.com"], bind=engine) == 1
