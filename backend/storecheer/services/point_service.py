# Overview: Service-layer operations for the point ledger; daily allowance, summaries and rankings.

"""
Point Ledger Invariants

- point_transactions is append-only; rows are never updated.
- A sender's points sent since the start of their calendar day never exceed
  the daily limit. The allowance check and the insert run under a per-sender
  lock (process lock + SELECT ... FOR UPDATE on the sender row) inside one
  transaction.
- Summaries and rankings are folded from the ledger on every read; there is
  no stored counter that could drift.
- The recipient notification is written after the ledger commit and is best
  effort: its failure never undoes the transaction.
"""

from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy import and_, case, func, or_

from ..extensions import db
from ..models import GoodJobCategory, PointTransaction, User, POINT_TYPES
from . import notification_service
from .concurrency import atomic, lock_for_update, serialized
from .errors import NotFound, ValidationFailure
from .store_service import user_timezone
from storecheer.time_utils import start_of_local_day, utcnow

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50

NOTIFICATION_TITLES = {
    "thanks": "💖 You received thanks points",
    "goodjob": "⭐ You received a Good Job",
}


class PointsError(ValidationFailure):
    """Raised for invalid point operations."""
    pass


def _daily_limit(daily_limit: int | None) -> int:
    if daily_limit is not None:
        return daily_limit
    return int(current_app.config.get("DAILY_POINT_LIMIT", 50))


def _points_sent_since(user_id: int, since) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(PointTransaction.points), 0))
        .filter(PointTransaction.from_user_id == user_id, PointTransaction.created_at >= since)
        .scalar()
    )
    return int(total or 0)


def remaining_daily_allowance(user_id: int, daily_limit: int | None = None, *, now=None) -> int:
    """
    Points the user may still send today: max(0, limit - sent since local midnight).

    "Today" is the calendar day in the user's primary store timezone.
    Recomputed from the ledger on every call.
    """
    limit = _daily_limit(daily_limit)
    user = db.session.query(User).filter_by(id=user_id).first()
    day_start = start_of_local_day(user_timezone(user), now or utcnow())
    return max(0, limit - _points_sent_since(user_id, day_start))


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_send(from_user_id, to_user_id, point_type, points) -> None:
    if not _is_int(to_user_id):
        raise PointsError("to_user_id must be an integer")
    if not _is_int(points):
        raise PointsError("points must be an integer")
    if points <= 0:
        raise PointsError("points must be greater than zero")
    if point_type not in POINT_TYPES:
        raise PointsError(f"point_type must be one of: {', '.join(POINT_TYPES)}")
    if from_user_id == to_user_id:
        raise PointsError("You cannot send points to yourself")


def send_points(
    from_user_id: int,
    to_user_id: int,
    point_type: str,
    points: int,
    message: str | None = None,
    goodjob_category_id: int | None = None,
    goodjob_free_text: str | None = None,
    *,
    daily_limit: int | None = None,
) -> PointTransaction:
    """
    Append one transfer to the ledger and notify the recipient.

    Raises PointsError / NotFound without writing anything when the input is
    invalid or the transfer would exceed the sender's remaining allowance.
    """
    _validate_send(from_user_id, to_user_id, point_type, points)
    limit = _daily_limit(daily_limit)

    with serialized("point_allowance", from_user_id):
        with atomic():
            sender = lock_for_update(db.session.query(User).filter_by(id=from_user_id)).first()
            if not sender or not sender.is_active:
                raise NotFound("Sender not found")

            recipient = db.session.query(User).filter_by(id=to_user_id).first()
            if not recipient or not recipient.is_active:
                raise NotFound("Recipient not found")
            if recipient.id == sender.id:
                raise PointsError("You cannot send points to yourself")

            if goodjob_category_id is not None:
                category = db.session.query(GoodJobCategory).filter_by(id=goodjob_category_id).first()
                if not category:
                    raise NotFound("Good Job category not found")

            now = utcnow()
            day_start = start_of_local_day(user_timezone(sender), now)
            remaining = max(0, limit - _points_sent_since(sender.id, day_start))
            if points > remaining:
                raise PointsError(
                    f"Daily limit exceeded: {remaining}pt remaining today, tried to send {points}pt"
                )

            txn = PointTransaction(
                from_user_id=sender.id,
                to_user_id=recipient.id,
                point_type=point_type,
                points=points,
                goodjob_category_id=goodjob_category_id,
                goodjob_free_text=goodjob_free_text,
                message=message,
                created_at=now,
            )
            db.session.add(txn)

    notified = notification_service.create_notification(
        to_user_id,
        "point_received",
        NOTIFICATION_TITLES[point_type],
        f"You received {points} points",
        {"from_user_id": from_user_id, "points": points, "point_type": point_type},
    )
    if not notified:
        logger.warning("Point transaction %s committed without recipient notification", txn.id)

    return txn


def get_point_summary(user_id: int) -> dict:
    """
    Sent/received totals per point type, folded from the ledger in one query
    so all four numbers come from the same snapshot.
    """
    def _sum(direction_col, point_type):
        return func.coalesce(func.sum(case(
            (and_(direction_col == user_id, PointTransaction.point_type == point_type), PointTransaction.points),
            else_=0,
        )), 0)

    row = (
        db.session.query(
            _sum(PointTransaction.from_user_id, "thanks"),
            _sum(PointTransaction.to_user_id, "thanks"),
            _sum(PointTransaction.from_user_id, "goodjob"),
            _sum(PointTransaction.to_user_id, "goodjob"),
        )
        .filter(or_(PointTransaction.from_user_id == user_id, PointTransaction.to_user_id == user_id))
        .one()
    )
    return {
        "thanks_sent": int(row[0] or 0),
        "thanks_received": int(row[1] or 0),
        "goodjob_sent": int(row[2] or 0),
        "goodjob_received": int(row[3] or 0),
    }


def get_point_history(user_id: int, direction: str | None = None, limit: int = HISTORY_LIMIT) -> list[PointTransaction]:
    """Newest-first transfers; direction is 'sent', 'received' or None for both."""
    query = db.session.query(PointTransaction)
    if direction == "sent":
        query = query.filter(PointTransaction.from_user_id == user_id)
    elif direction == "received":
        query = query.filter(PointTransaction.to_user_id == user_id)
    elif direction is None:
        query = query.filter(or_(PointTransaction.from_user_id == user_id, PointTransaction.to_user_id == user_id))
    else:
        raise PointsError("direction must be 'sent' or 'received'")

    return (
        query.order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
        .limit(limit)
        .all()
    )


def get_store_ranking(store_id: int, point_type: str, viewer_id: int | None = None) -> dict:
    """
    Active store members ordered by points received of one type.

    Members with nothing received are listed with 0. Ties keep member id order.
    """
    if point_type not in POINT_TYPES:
        raise PointsError(f"point_type must be one of: {', '.join(POINT_TYPES)}")

    members = (
        db.session.query(User)
        .filter_by(primary_store_id=store_id, is_active=True)
        .order_by(User.id.asc())
        .all()
    )
    if not members:
        return {"point_type": point_type, "rankings": [], "my_rank": None}

    totals = dict(
        db.session.query(PointTransaction.to_user_id, func.sum(PointTransaction.points))
        .filter(
            PointTransaction.to_user_id.in_([m.id for m in members]),
            PointTransaction.point_type == point_type,
        )
        .group_by(PointTransaction.to_user_id)
        .all()
    )

    ordered = sorted(members, key=lambda m: -int(totals.get(m.id) or 0))
    rankings = [
        {
            "rank": index + 1,
            "id": member.id,
            "nickname": member.nickname or member.name,
            "avatar_id": member.avatar_id,
            "value": int(totals.get(member.id) or 0),
        }
        for index, member in enumerate(ordered)
    ]
    my_rank = next((r["rank"] for r in rankings if r["id"] == viewer_id), None)
    return {"point_type": point_type, "rankings": rankings, "my_rank": my_rank}


def list_goodjob_categories(organization_id: int) -> list[GoodJobCategory]:
    return (
        db.session.query(GoodJobCategory)
        .filter_by(organization_id=organization_id)
        .order_by(GoodJobCategory.sort_order.asc(), GoodJobCategory.id.asc())
        .all()
    )


def create_goodjob_category(
    organization_id: int,
    name: str,
    description: str | None = None,
    icon: str | None = None,
    sort_order: int = 0,
) -> GoodJobCategory:
    if not name:
        raise PointsError("Category name is required")
    if not _is_int(sort_order):
        raise PointsError("sort_order must be an integer")

    category = GoodJobCategory(
        organization_id=organization_id,
        name=name,
        description=description,
        icon=icon or "⭐",
        sort_order=sort_order,
    )
    db.session.add(category)
    db.session.commit()
    return category
