# Overview: Service-layer operations for daily store missions and their progress counters.

"""
Mission Service

Progress contract: update_progress takes the absolute new value, not a
delta; callers apply increments themselves. Completion is one-way: once a
mission is completed (or cancelled) every further update is refused and
current_value is left as it was.
"""

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import Mission, Store, User
from .concurrency import lock_for_update
from .errors import NotFound, ValidationFailure
from .store_service import store_timezone
from storecheer.time_utils import local_date, utcnow


class MissionError(ValidationFailure):
    """Raised for invalid mission operations."""
    pass


# Roles that work across stores; everyone else only touches their own store
CROSS_STORE_ROLES = ("system_admin", "headquarters_admin", "area_manager")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_store_scope(actor: User, store_id) -> None:
    """Refuse access to another store's missions for store-bound roles."""
    if actor.role in CROSS_STORE_ROLES:
        return
    if store_id is None or store_id != actor.primary_store_id:
        raise MissionError("Missions of other stores cannot be accessed")


def create_mission(
    *,
    store_id: int,
    name: str,
    target_date: date,
    points: int = 0,
    target_value: int | None = None,
    description: str | None = None,
    icon: str | None = None,
    created_by: int | None = None,
    actor: User | None = None,
) -> Mission:
    if not name:
        raise MissionError("Mission name is required")
    if not _is_int(store_id):
        raise MissionError("store_id must be an integer")
    if target_value is not None and (not _is_int(target_value) or target_value <= 0):
        raise MissionError("target_value must be a positive integer")
    if not _is_int(points) or points < 0:
        raise MissionError("points must be a non-negative integer")
    if actor is not None:
        check_store_scope(actor, store_id)

    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise NotFound("Store not found")

    mission = Mission(
        store_id=store_id,
        name=name,
        description=description,
        icon=icon or "🎯",
        target_date=target_date,
        target_value=target_value,
        current_value=0,
        points=points,
        status="active",
        created_by=created_by,
    )
    db.session.add(mission)
    db.session.commit()
    return mission


def get_today_missions(store_id: int) -> list[Mission]:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise NotFound("Store not found")

    today = local_date(store_timezone(store))
    return (
        db.session.query(Mission)
        .filter_by(store_id=store_id, target_date=today)
        .order_by(Mission.created_at.asc(), Mission.id.asc())
        .all()
    )


def update_progress(mission_id: int, new_value: int, *, actor: User | None = None) -> Mission:
    """Set current_value and recompute status. With actor, the mission must be in their scope."""
    if not _is_int(new_value):
        raise MissionError("value must be an integer")
    if new_value < 0:
        raise MissionError("value cannot be negative")

    mission = lock_for_update(db.session.query(Mission).filter_by(id=mission_id)).first()
    if not mission:
        db.session.rollback()
        raise NotFound("Mission not found")

    if actor is not None:
        try:
            check_store_scope(actor, mission.store_id)
        except MissionError:
            db.session.rollback()
            raise

    if mission.status != "active":
        db.session.rollback()
        raise MissionError(f"Mission is already {mission.status}")

    completed = mission.target_value is not None and new_value >= mission.target_value
    changes = {"current_value": new_value}
    if completed:
        changes["status"] = "completed"
        changes["completed_at"] = utcnow()

    # Guarded on status so a concurrent completion is never overwritten
    updated = (
        db.session.query(Mission)
        .filter(Mission.id == mission_id, Mission.status == "active")
        .update(changes, synchronize_session=False)
    )
    if not updated:
        db.session.rollback()
        raise MissionError("Mission is no longer active")

    db.session.commit()
    db.session.refresh(mission)
    return mission


def cancel_mission(mission_id: int, *, actor: User | None = None) -> Mission:
    mission = db.session.query(Mission).filter_by(id=mission_id).first()
    if not mission:
        raise NotFound("Mission not found")
    if actor is not None:
        check_store_scope(actor, mission.store_id)
    if mission.status != "active":
        raise MissionError(f"Mission is already {mission.status}")

    mission.status = "cancelled"
    db.session.commit()
    return mission
