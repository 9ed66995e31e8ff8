# Overview: Service-layer operations for attendance; clock-in/out and who is working now.

"""
Attendance Service

WHY: Employees clock in and out of a store. A record is open while
clock_out is NULL. A user never has two open records: clock_in checks first
and the partial unique index uq_attendance_open_per_user rejects the loser
of a concurrent race, which is reported as the same failure.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import AttendanceRecord, Store, User
from .concurrency import serialized
from .errors import NotFound, ValidationFailure
from .store_service import store_timezone, user_timezone
from storecheer.time_utils import start_of_local_day, utcnow


HISTORY_LIMIT = 30


class AttendanceError(ValidationFailure):
    """Raised for invalid attendance operations."""
    pass


def get_open_attendance(user_id: int) -> AttendanceRecord | None:
    """The user's open record regardless of day, e.g. a shift never clocked out."""
    return db.session.query(AttendanceRecord).filter_by(user_id=user_id, clock_out=None).first()


def clock_in(user_id: int, store_id: int) -> AttendanceRecord:
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user or not user.is_active:
        raise NotFound("User not found")

    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store or not store.is_active:
        raise NotFound("Store not found")

    with serialized("attendance", user_id):
        if get_open_attendance(user_id):
            raise AttendanceError("User is already clocked in")

        record = AttendanceRecord(
            user_id=user_id,
            store_id=store_id,
            clock_in=utcnow(),
        )
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise AttendanceError("User is already clocked in") from e

    return record


def clock_out(attendance_id: int, user_id: int | None = None) -> AttendanceRecord:
    """
    Close an open record. When user_id is given the record must belong to
    that user.
    """
    query = db.session.query(AttendanceRecord).filter_by(id=attendance_id)
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    record = query.first()
    if not record:
        raise NotFound("Attendance record not found")

    if record.clock_out is not None:
        raise AttendanceError("Already clocked out")

    # Conditional update: only the request that sees clock_out IS NULL wins
    now = utcnow()
    updated = (
        db.session.query(AttendanceRecord)
        .filter(AttendanceRecord.id == record.id, AttendanceRecord.clock_out.is_(None))
        .update({"clock_out": now}, synchronize_session=False)
    )
    if not updated:
        db.session.rollback()
        raise AttendanceError("Already clocked out")

    db.session.commit()
    db.session.refresh(record)
    return record


def get_current_attendance(user_id: int) -> AttendanceRecord | None:
    """Most recent open record started today (user's store timezone), else None."""
    user = db.session.query(User).filter_by(id=user_id).first()
    day_start = start_of_local_day(user_timezone(user))

    return (
        db.session.query(AttendanceRecord)
        .filter(
            AttendanceRecord.user_id == user_id,
            AttendanceRecord.clock_out.is_(None),
            AttendanceRecord.clock_in >= day_start,
        )
        .order_by(AttendanceRecord.clock_in.desc())
        .first()
    )


def get_working_members(store_id: int) -> list[tuple[User, object]]:
    """(user, clock_in) for everyone clocked in at the store since its local midnight."""
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise NotFound("Store not found")

    day_start = start_of_local_day(store_timezone(store))
    rows = (
        db.session.query(User, AttendanceRecord.clock_in)
        .join(AttendanceRecord, AttendanceRecord.user_id == User.id)
        .filter(
            AttendanceRecord.store_id == store_id,
            AttendanceRecord.clock_out.is_(None),
            AttendanceRecord.clock_in >= day_start,
        )
        .order_by(AttendanceRecord.clock_in.asc())
        .all()
    )
    return [(user, clock_in) for user, clock_in in rows]


def get_attendance_history(user_id: int, limit: int = HISTORY_LIMIT) -> list[AttendanceRecord]:
    return (
        db.session.query(AttendanceRecord)
        .filter_by(user_id=user_id)
        .order_by(AttendanceRecord.clock_in.desc())
        .limit(limit)
        .all()
    )
