# Overview: Ghost-user reconciliation between the identity provider and the users table.

"""
Identity Reconciliation

A ghost is a users row whose auth_id is NULL or has no identity-provider
account. Reconciliation runs in two administrator-triggered phases:

1. check_ghost_users(): read-only. Lists the provider, lists the table,
   returns the difference. If the provider listing fails the check fails;
   a failed listing is never treated as "the provider has no users".
2. execute_ghost_deletion(ids, confirm=True): deletes those rows.

Execute policy (re-validation): the provider is listed again and only the
requested ids that are still ghosts are deleted. Ids that gained an account
in the meantime, or no longer exist, are reported as skipped.

Dependent rows are deleted with the ghost in the same transaction: point
transactions sent or received, attendance records, notifications and skill
acquisitions. Missions and certifications the ghost authored keep their
rows with the author reference cleared.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import or_

from ..extensions import db
from ..models import AttendanceRecord, Mission, Notification, PointTransaction, SkillAcquisition, User
from .concurrency import atomic, serialized
from .errors import ValidationFailure
from .identity_provider import get_identity_provider

logger = logging.getLogger(__name__)


class ReconciliationError(ValidationFailure):
    """Raised for invalid reconciliation requests."""
    pass


@dataclass
class GhostReport:
    auth_user_count: int
    db_user_count: int
    ghosts: list[User]

    @property
    def ghost_ids(self) -> list[int]:
        return [u.id for u in self.ghosts]

    def to_dict(self) -> dict:
        return {
            "auth_user_count": self.auth_user_count,
            "db_user_count": self.db_user_count,
            "ghost_count": len(self.ghosts),
            "ghosts": [
                {
                    "id": u.id,
                    "auth_id": u.auth_id,
                    "email": u.email,
                    "name": u.name,
                    "role": u.role,
                    "is_active": u.is_active,
                    "reason": "missing_auth_id" if u.auth_id is None else "auth_account_missing",
                }
                for u in self.ghosts
            ],
        }


@dataclass
class DeletionReport:
    deleted_user_ids: list[int] = field(default_factory=list)
    skipped_user_ids: list[int] = field(default_factory=list)
    deleted_rows: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "deleted_count": len(self.deleted_user_ids),
            "deleted_user_ids": self.deleted_user_ids,
            "skipped_user_ids": self.skipped_user_ids,
            "deleted_rows": self.deleted_rows,
        }


def _provider_ids() -> set[str]:
    # AdapterFailure propagates: no listing, no verdict
    return {record.id for record in get_identity_provider().admin_list_users()}


def _find_ghosts(auth_ids: set[str], candidate_ids: list[int] | None = None) -> list[User]:
    query = db.session.query(User)
    if candidate_ids is not None:
        query = query.filter(User.id.in_(candidate_ids))
    users = query.order_by(User.id.asc()).all()
    return [u for u in users if u.auth_id is None or u.auth_id not in auth_ids]


def check_ghost_users() -> GhostReport:
    """Compute the ghost set without writing anything."""
    auth_ids = _provider_ids()
    db_user_count = db.session.query(User).count()
    ghosts = _find_ghosts(auth_ids)

    logger.info(
        "Ghost check: %d auth users, %d db users, %d ghosts",
        len(auth_ids), db_user_count, len(ghosts),
    )
    return GhostReport(auth_user_count=len(auth_ids), db_user_count=db_user_count, ghosts=ghosts)


def _delete_dependents(user_ids: list[int]) -> dict:
    counts = {}
    counts["point_transactions"] = db.session.query(PointTransaction).filter(
        or_(PointTransaction.from_user_id.in_(user_ids), PointTransaction.to_user_id.in_(user_ids))
    ).delete(synchronize_session=False)
    counts["attendance_records"] = db.session.query(AttendanceRecord).filter(
        AttendanceRecord.user_id.in_(user_ids)
    ).delete(synchronize_session=False)
    counts["notifications"] = db.session.query(Notification).filter(
        Notification.user_id.in_(user_ids)
    ).delete(synchronize_session=False)
    counts["skill_acquisitions"] = db.session.query(SkillAcquisition).filter(
        SkillAcquisition.user_id.in_(user_ids)
    ).delete(synchronize_session=False)

    db.session.query(SkillAcquisition).filter(
        SkillAcquisition.certified_by.in_(user_ids)
    ).update({"certified_by": None}, synchronize_session=False)
    db.session.query(Mission).filter(
        Mission.created_by.in_(user_ids)
    ).update({"created_by": None}, synchronize_session=False)
    return counts


def execute_ghost_deletion(ghost_user_ids, *, confirm: bool = False) -> DeletionReport:
    """
    Delete the given ghost users (and their dependent rows).

    An empty id list is a successful no-op. Without confirm=True nothing is
    deleted. Provider failure aborts before any delete.
    """
    try:
        requested = sorted({int(uid) for uid in (ghost_user_ids or [])})
    except (TypeError, ValueError) as e:
        raise ReconciliationError("ghost_user_ids must be a list of user ids") from e
    if not requested:
        return DeletionReport()

    if not confirm:
        raise ReconciliationError("Deletion requires explicit confirmation")

    with serialized("ghost_deletion"):
        auth_ids = _provider_ids()
        still_ghosts = [u.id for u in _find_ghosts(auth_ids, requested)]
        report = DeletionReport(
            deleted_user_ids=still_ghosts,
            skipped_user_ids=[uid for uid in requested if uid not in still_ghosts],
        )
        if not still_ghosts:
            logger.info("Ghost deletion: nothing to delete, skipped %s", report.skipped_user_ids)
            return report

        with atomic():
            report.deleted_rows = _delete_dependents(still_ghosts)
            report.deleted_rows["users"] = db.session.query(User).filter(
                User.id.in_(still_ghosts)
            ).delete(synchronize_session=False)

    logger.info(
        "Ghost deletion: deleted users %s, skipped %s, rows %s",
        report.deleted_user_ids, report.skipped_user_ids, report.deleted_rows,
    )
    return report
