# Overview: Pytest coverage for ghost-user reconciliation.

"""
Identity Reconciliation Tests

A ghost is a users row with no identity provider account. Verifies:
- The check phase is read-only and reports exactly the ghost set
- A failed provider listing fails the check instead of flagging everyone
- Execute requires confirmation, treats an empty set as a no-op and
  re-validates against the provider before deleting
- Dependent rows are removed with the ghost in one transaction
"""

import pytest

from storecheer.models import (
    AttendanceRecord,
    Mission,
    Notification,
    PointTransaction,
    Skill,
    SkillAcquisition,
    User,
)
from storecheer.services import attendance_service, point_service, reconciliation_service, skill_service
from storecheer.services.errors import AdapterFailure
from storecheer.services.reconciliation_service import ReconciliationError
from storecheer.time_utils import utcnow


@pytest.fixture
def ghost(db_session, provider, make_user):
    """User C: had an account that was removed from the provider."""
    user = make_user("carol@cheer.test")
    provider.remove_account(user.auth_id)
    return user


@pytest.fixture
def unlinked(make_user):
    """A row that never had an auth id."""
    return make_user("dave@cheer.test", with_account=False)


class TestCheckGhostUsers:
    """Check phase: difference between users table and provider listing."""

    def test_provider_ab_database_abc(self, db_session, alice, bob, ghost):
        """Provider {A, B}, users {A, B, C}: C is the only ghost."""
        report = reconciliation_service.check_ghost_users()

        assert report.auth_user_count == 2
        assert report.db_user_count == 3
        assert report.ghost_ids == [ghost.id]
        assert report.to_dict()["ghosts"][0]["reason"] == "auth_account_missing"

    def test_missing_auth_id_is_ghost(self, db_session, alice, unlinked):
        report = reconciliation_service.check_ghost_users()

        assert report.ghost_ids == [unlinked.id]
        assert report.to_dict()["ghosts"][0]["reason"] == "missing_auth_id"

    def test_no_ghosts(self, db_session, alice, bob):
        report = reconciliation_service.check_ghost_users()
        assert report.ghosts == []
        assert report.to_dict()["ghost_count"] == 0

    def test_check_is_read_only(self, db_session, alice, ghost):
        reconciliation_service.check_ghost_users()
        reconciliation_service.check_ghost_users()
        assert db_session.query(User).count() == 2

    def test_listing_failure_fails_check(self, db_session, provider, alice, bob, ghost):
        """An unreachable provider must never make every user look like a ghost."""
        provider.fail_listing = True

        with pytest.raises(AdapterFailure):
            reconciliation_service.check_ghost_users()
        assert db_session.query(User).count() == 3


class TestExecuteGhostDeletion:
    """Execute phase: confirmed, re-validated deletion."""

    def test_deletes_only_ghosts(self, db_session, alice, bob, ghost):
        ghost_id = ghost.id
        report = reconciliation_service.execute_ghost_deletion([ghost_id], confirm=True)

        assert report.deleted_user_ids == [ghost_id]
        assert report.skipped_user_ids == []
        assert report.deleted_rows["users"] == 1
        remaining = {u.id for u in db_session.query(User).all()}
        assert remaining == {alice.id, bob.id}

    def test_empty_set_is_noop(self, db_session, provider, alice):
        report = reconciliation_service.execute_ghost_deletion([], confirm=False)

        assert report.deleted_user_ids == []
        assert provider.list_calls == 0
        assert db_session.query(User).count() == 1

    def test_requires_confirmation(self, db_session, ghost):
        with pytest.raises(ReconciliationError, match="confirmation"):
            reconciliation_service.execute_ghost_deletion([ghost.id])
        assert db_session.query(User).filter_by(id=ghost.id).count() == 1

    def test_rejects_malformed_ids(self, db_session):
        with pytest.raises(ReconciliationError):
            reconciliation_service.execute_ghost_deletion(["not-an-id"], confirm=True)

    def test_revalidates_against_provider(self, db_session, provider, alice, ghost, unlinked):
        """A user who regains an account between check and execute is skipped."""
        report = reconciliation_service.check_ghost_users()
        assert set(report.ghost_ids) == {ghost.id, unlinked.id}

        provider.add_account(ghost.email, auth_id=ghost.auth_id)
        ghost_id, unlinked_id = ghost.id, unlinked.id

        result = reconciliation_service.execute_ghost_deletion(report.ghost_ids, confirm=True)

        assert result.deleted_user_ids == [unlinked_id]
        assert result.skipped_user_ids == [ghost_id]
        assert db_session.query(User).filter_by(id=ghost_id).count() == 1

    def test_non_ghost_ids_are_skipped(self, db_session, alice, bob):
        result = reconciliation_service.execute_ghost_deletion([alice.id, 99999], confirm=True)

        assert result.deleted_user_ids == []
        assert result.skipped_user_ids == sorted([alice.id, 99999])
        assert db_session.query(User).count() == 2

    def test_listing_failure_deletes_nothing(self, db_session, provider, ghost):
        ghost_id = ghost.id
        provider.fail_listing = True

        with pytest.raises(AdapterFailure):
            reconciliation_service.execute_ghost_deletion([ghost_id], confirm=True)
        assert db_session.query(User).filter_by(id=ghost_id).count() == 1

    def test_dependent_rows_removed(self, db_session, org, store, alice, bob, make_user):
        """Point transactions, attendance, notifications and skills go with the ghost."""
        carol = make_user("carol@cheer.test", role="manager")
        point_service.send_points(carol.id, alice.id, "thanks", 5)
        point_service.send_points(bob.id, carol.id, "goodjob", 3)
        point_service.send_points(alice.id, bob.id, "thanks", 1)
        attendance_service.clock_in(carol.id, store.id)
        skill = skill_service.create_skill(org.id, "Register", "Cashier")
        skill_service.acquire_skill(carol.id, skill.id, certified_by=carol.id)
        skill_service.acquire_skill(alice.id, skill.id, certified_by=carol.id)
        mission = Mission(store_id=store.id, name="Greet 10 customers", target_date=utcnow().date(),
                          target_value=10, created_by=carol.id)
        db_session.add(mission)
        db_session.commit()
        mission_id = mission.id

        carol_id = carol.id
        alice_id = alice.id
        db_session.query(User).filter_by(id=carol_id).update({"auth_id": None})
        db_session.commit()

        report = reconciliation_service.execute_ghost_deletion([carol_id], confirm=True)

        assert report.deleted_user_ids == [carol_id]
        assert report.deleted_rows["point_transactions"] == 2
        assert report.deleted_rows["attendance_records"] == 1
        assert report.deleted_rows["skill_acquisitions"] == 1
        assert report.deleted_rows["notifications"] >= 1

        assert db_session.query(PointTransaction).count() == 1
        assert db_session.query(AttendanceRecord).filter_by(user_id=carol_id).count() == 0
        assert db_session.query(Notification).filter_by(user_id=carol_id).count() == 0
        remaining_skill = db_session.query(SkillAcquisition).filter_by(user_id=alice_id).one()
        assert remaining_skill.certified_by is None
        assert db_session.query(Skill).count() == 1
        assert db_session.query(Mission).filter_by(id=mission_id).one().created_by is None
