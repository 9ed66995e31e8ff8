# Overview: Service-layer operations for notifications; best-effort sink plus read/unread state.

"""
Notification Service

create_notification is a fire-and-forget sink: a failure is logged and
reported as False, never raised, so callers that already committed their
own work are unaffected.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Notification
from .errors import NotFound

logger = logging.getLogger(__name__)


def create_notification(
    user_id: int,
    type: str,
    title: str,
    body: str = "",
    payload: dict | None = None,
) -> bool:
    try:
        db.session.add(Notification(
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            payload=payload,
            is_read=False,
        ))
        db.session.commit()
        return True
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to create %s notification for user %s", type, user_id)
        return False


def list_notifications(user_id: int, limit: int = 20) -> list[Notification]:
    return (
        db.session.query(Notification)
        .filter_by(user_id=user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def mark_as_read(notification_id: int, user_id: int | None = None) -> Notification:
    """Mark one notification read. Scoped to user_id when given."""
    query = db.session.query(Notification).filter_by(id=notification_id)
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    notification = query.first()
    if not notification:
        raise NotFound("Notification not found")

    notification.is_read = True
    db.session.commit()
    return notification


def mark_all_as_read(user_id: int) -> int:
    updated = (
        db.session.query(Notification)
        .filter_by(user_id=user_id, is_read=False)
        .update({"is_read": True}, synchronize_session=False)
    )
    db.session.commit()
    return updated


def get_unread_count(user_id: int) -> int:
    return db.session.query(Notification).filter_by(user_id=user_id, is_read=False).count()
