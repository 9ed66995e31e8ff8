# Overview: Pytest coverage for user directory and admin account creation.

"""
User Directory Tests

Verifies:
- Admin account creation writes provider first, then the users row
- Provider failure leaves nothing behind
- A users-row failure after the provider write is a ConsistencyFailure
  naming the orphaned auth id
- Managers are limited to their own store and to staff/manager roles
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from storecheer.models import User
from storecheer.services import user_service
from storecheer.services.errors import AdapterFailure, ConsistencyFailure, NotFound
from storecheer.services.user_service import UserError


PASSWORD = "Password123!"


class TestAdminCreateUser:

    def test_creates_account_and_row(self, db_session, provider, sysadmin, store):
        user = user_service.admin_create_user(
            actor=sysadmin,
            email="New.Hire@Cheer.test",
            password=PASSWORD,
            name="New Hire",
            primary_store_id=store.id,
        )

        assert user.email == "new.hire@cheer.test"
        assert user.auth_id in provider.accounts
        assert user.nickname == "New Hire"
        assert user.role == "staff"

    def test_provider_failure_writes_nothing(self, db_session, provider, sysadmin, store):
        provider.fail_create = True
        before = db_session.query(User).count()

        with pytest.raises(AdapterFailure):
            user_service.admin_create_user(
                actor=sysadmin, email="x@cheer.test", password=PASSWORD, name="X", primary_store_id=store.id,
            )
        assert db_session.query(User).count() == before

    def test_row_failure_reports_orphan(self, db_session, monkeypatch, provider, sysadmin, store):
        def failing_create_user(**kwargs):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(user_service, "create_user", failing_create_user)

        with pytest.raises(ConsistencyFailure) as exc_info:
            user_service.admin_create_user(
                actor=sysadmin, email="orphan@cheer.test", password=PASSWORD, name="Orphan",
                primary_store_id=store.id,
            )

        orphan_id = exc_info.value.orphaned_auth_id
        assert orphan_id in provider.accounts
        assert orphan_id in str(exc_info.value)
        assert "NOT rolled back" in str(exc_info.value)
        assert db_session.query(User).filter_by(email="orphan@cheer.test").count() == 0

    def test_duplicate_email_rejected_before_provider(self, db_session, provider, sysadmin, alice):
        accounts_before = len(provider.accounts)

        with pytest.raises(UserError, match="already exists"):
            user_service.admin_create_user(
                actor=sysadmin, email=alice.email, password=PASSWORD, name="Dup",
            )
        assert len(provider.accounts) == accounts_before

    def test_unknown_store(self, db_session, sysadmin):
        with pytest.raises(NotFound):
            user_service.admin_create_user(
                actor=sysadmin, email="y@cheer.test", password=PASSWORD, name="Y", primary_store_id=99999,
            )

    def test_invalid_role(self, db_session, sysadmin, store):
        with pytest.raises(UserError, match="Invalid role"):
            user_service.admin_create_user(
                actor=sysadmin, email="z@cheer.test", password=PASSWORD, name="Z",
                role="owner", primary_store_id=store.id,
            )


class TestManagerScope:

    def test_manager_creates_in_own_store(self, db_session, manager, store):
        user = user_service.admin_create_user(
            actor=manager, email="staff@cheer.test", password=PASSWORD, name="Staff", primary_store_id=store.id,
        )
        assert user.primary_store_id == store.id

    def test_manager_cannot_create_in_other_store(self, db_session, provider, manager, other_store):
        accounts_before = len(provider.accounts)

        with pytest.raises(UserError, match="own store"):
            user_service.admin_create_user(
                actor=manager, email="s2@cheer.test", password=PASSWORD, name="S2",
                primary_store_id=other_store.id,
            )
        assert len(provider.accounts) == accounts_before

    def test_manager_cannot_grant_admin_roles(self, db_session, manager, store):
        with pytest.raises(UserError):
            user_service.admin_create_user(
                actor=manager, email="hq@cheer.test", password=PASSWORD, name="HQ",
                role="headquarters_admin", primary_store_id=store.id,
            )

    def test_only_system_admin_grants_system_admin(self, db_session, make_user, store):
        hq = make_user("hq@cheer.test", role="headquarters_admin")
        with pytest.raises(UserError, match="system administrator"):
            user_service.admin_create_user(
                actor=hq, email="root@cheer.test", password=PASSWORD, name="Root",
                role="system_admin", primary_store_id=store.id,
            )

    def test_staff_cannot_manage(self, db_session, alice, store):
        with pytest.raises(UserError):
            user_service.admin_create_user(
                actor=alice, email="s3@cheer.test", password=PASSWORD, name="S3", primary_store_id=store.id,
            )

    def test_manager_lists_own_store_only(self, db_session, manager, alice, make_user, other_store):
        outsider = make_user("outsider@cheer.test", store_id=other_store.id)

        visible = {u.id for u in user_service.list_users_for(manager)}
        assert alice.id in visible
        assert manager.id in visible
        assert outsider.id not in visible

    def test_admin_lists_everyone(self, db_session, sysadmin, alice, make_user, other_store):
        outsider = make_user("outsider@cheer.test", store_id=other_store.id)
        visible = {u.id for u in user_service.list_users_for(sysadmin)}
        assert {sysadmin.id, alice.id, outsider.id} <= visible


class TestProfileAndActivation:

    def test_update_profile(self, db_session, alice):
        user = user_service.update_profile(alice.id, {"nickname": "Ali", "hobbies": "Climbing"})
        assert user.nickname == "Ali"
        assert user.hobbies == "Climbing"

    def test_update_profile_rejects_role_change(self, db_session, alice):
        with pytest.raises(UserError, match="not editable"):
            user_service.update_profile(alice.id, {"role": "system_admin"})

    def test_deactivate_and_restore(self, db_session, manager, alice):
        assert user_service.set_active(actor=manager, user_id=alice.id, is_active=False).is_active is False
        assert user_service.set_active(actor=manager, user_id=alice.id, is_active=True).is_active is True

    def test_cannot_deactivate_self(self, db_session, manager):
        with pytest.raises(UserError):
            user_service.set_active(actor=manager, user_id=manager.id, is_active=False)

    def test_store_members_active_only(self, db_session, store, alice, bob):
        bob.is_active = False
        db_session.commit()
        assert [u.id for u in user_service.get_store_members(store.id)] == [alice.id]
