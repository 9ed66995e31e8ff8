# Overview: Pytest coverage for mission progress tracking.

"""
Mission Tests

Progress is set as an absolute value. Completion happens when the target is
reached and is one-way: completed and cancelled missions refuse updates.
"""

from datetime import timedelta

import pytest

from storecheer.services import mission_service
from storecheer.services.errors import NotFound
from storecheer.services.mission_service import MissionError
from storecheer.time_utils import local_date


@pytest.fixture
def mission(db_session, store, manager):
    return mission_service.create_mission(
        store_id=store.id,
        name="Sell 10 lunch sets",
        target_date=local_date("UTC"),
        target_value=10,
        points=5,
        created_by=manager.id,
    )


class TestUpdateProgress:

    def test_completion_scenario(self, db_session, mission):
        """8 stays active, 10 completes, a later 3 is refused."""
        updated = mission_service.update_progress(mission.id, 8)
        assert updated.current_value == 8
        assert updated.status == "active"
        assert updated.completed_at is None

        updated = mission_service.update_progress(mission.id, 10)
        assert updated.current_value == 10
        assert updated.status == "completed"
        assert updated.completed_at is not None

        with pytest.raises(MissionError, match="already completed"):
            mission_service.update_progress(mission.id, 3)

        db_session.refresh(mission)
        assert mission.current_value == 10
        assert mission.status == "completed"

    def test_overshoot_completes(self, db_session, mission):
        updated = mission_service.update_progress(mission.id, 12)
        assert updated.status == "completed"
        assert updated.current_value == 12

    def test_value_is_absolute(self, db_session, mission):
        mission_service.update_progress(mission.id, 6)
        updated = mission_service.update_progress(mission.id, 4)
        assert updated.current_value == 4

    def test_without_target_never_completes(self, db_session, store):
        open_ended = mission_service.create_mission(
            store_id=store.id, name="Collect feedback", target_date=local_date("UTC"),
        )
        updated = mission_service.update_progress(open_ended.id, 1000)
        assert updated.status == "active"

    @pytest.mark.parametrize("value", [-1, 2.5, "3", None, True])
    def test_rejects_invalid_value(self, db_session, mission, value):
        with pytest.raises(MissionError):
            mission_service.update_progress(mission.id, value)

    def test_unknown_mission(self, db_session):
        with pytest.raises(NotFound):
            mission_service.update_progress(99999, 1)

    def test_cancelled_mission_refuses_progress(self, db_session, mission):
        mission_service.cancel_mission(mission.id)
        with pytest.raises(MissionError, match="cancelled"):
            mission_service.update_progress(mission.id, 1)


class TestMissionLifecycle:

    def test_create_validates(self, db_session, store):
        with pytest.raises(MissionError):
            mission_service.create_mission(store_id=store.id, name="", target_date=local_date("UTC"))
        with pytest.raises(MissionError):
            mission_service.create_mission(
                store_id=store.id, name="Bad", target_date=local_date("UTC"), target_value=0,
            )
        with pytest.raises(NotFound):
            mission_service.create_mission(store_id=99999, name="Nowhere", target_date=local_date("UTC"))

    def test_today_missions(self, db_session, store, mission):
        mission_service.create_mission(
            store_id=store.id, name="Tomorrow's mission", target_date=local_date("UTC") + timedelta(days=1),
        )
        today = mission_service.get_today_missions(store.id)
        assert [m.id for m in today] == [mission.id]

    def test_cancel_completed_mission_refused(self, db_session, mission):
        mission_service.update_progress(mission.id, 10)
        with pytest.raises(MissionError):
            mission_service.cancel_mission(mission.id)

    @pytest.mark.parametrize("field, value", [
        ("target_value", "10"),
        ("target_value", 2.5),
        ("target_value", True),
        ("points", "5"),
        ("points", None),
        ("points", -1),
        ("store_id", "1"),
    ])
    def test_create_rejects_malformed_numbers(self, db_session, store, field, value):
        kwargs = {"store_id": store.id, "name": "Typed", "target_date": local_date("UTC"), field: value}
        with pytest.raises(MissionError, match=field):
            mission_service.create_mission(**kwargs)
        assert mission_service.get_today_missions(store.id) == []


class TestStoreScope:
    """Store-bound roles only touch missions of their primary store."""

    @pytest.fixture
    def outsider(self, make_user, other_store):
        return make_user("carol@cheer.test", store_id=other_store.id)

    def test_progress_from_other_store_refused(self, db_session, mission, outsider):
        with pytest.raises(MissionError, match="other stores"):
            mission_service.update_progress(mission.id, 10, actor=outsider)

        db_session.refresh(mission)
        assert mission.current_value == 0
        assert mission.status == "active"

    def test_progress_by_own_store_member(self, db_session, mission, alice):
        updated = mission_service.update_progress(mission.id, 4, actor=alice)
        assert updated.current_value == 4

    def test_manager_cannot_create_for_other_store(self, db_session, manager, other_store):
        with pytest.raises(MissionError, match="other stores"):
            mission_service.create_mission(
                store_id=other_store.id, name="Elsewhere", target_date=local_date("UTC"), actor=manager,
            )
        assert mission_service.get_today_missions(other_store.id) == []

    def test_manager_cannot_cancel_other_store_mission(self, db_session, mission, make_user, other_store):
        other_manager = make_user("dave@cheer.test", role="manager", store_id=other_store.id)
        with pytest.raises(MissionError):
            mission_service.cancel_mission(mission.id, actor=other_manager)

        db_session.refresh(mission)
        assert mission.status == "active"

    def test_admin_works_across_stores(self, db_session, sysadmin, other_store):
        mission = mission_service.create_mission(
            store_id=other_store.id, name="HQ campaign", target_date=local_date("UTC"), actor=sysadmin,
        )
        assert mission_service.update_progress(mission.id, 1, actor=sysadmin).current_value == 1
