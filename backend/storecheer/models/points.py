from __future__ import annotations

from ..extensions import db
from storecheer.time_utils import to_utc_z, utcnow

POINT_TYPES = ("thanks", "goodjob")


class GoodJobCategory(db.Model):
    """Organization-defined reasons a goodjob can be given for."""
    __tablename__ = "goodjob_categories"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "name", name="uq_goodjob_categories_org_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    icon = db.Column(db.String(16), nullable=False, default="⭐")
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "sort_order": self.sort_order,
        }


class PointTransaction(db.Model):
    """
    Append-only ledger of peer-recognition points.

    IMMUTABLE: Records are never updated. They are only removed when the
    sender or recipient is deleted as a ghost user.

    Point summaries are never stored; they are folded from this table on
    read (see point_service.get_point_summary).
    """
    __tablename__ = "point_transactions"
    __table_args__ = (
        db.CheckConstraint("points > 0", name="ck_point_transactions_points_positive"),
        db.CheckConstraint("point_type IN ('thanks', 'goodjob')", name="ck_point_transactions_type"),
        db.Index("ix_point_txns_from_created", "from_user_id", "created_at"),
        db.Index("ix_point_txns_to_created", "to_user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    from_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    to_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    point_type = db.Column(db.String(16), nullable=False)
    points = db.Column(db.Integer, nullable=False)

    goodjob_category_id = db.Column(db.Integer, db.ForeignKey("goodjob_categories.id"), nullable=True)
    goodjob_free_text = db.Column(db.Text, nullable=True)
    message = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    from_user = db.relationship("User", foreign_keys=[from_user_id])
    to_user = db.relationship("User", foreign_keys=[to_user_id])
    goodjob_category = db.relationship("GoodJobCategory")

    def to_dict(self, include_users: bool = False) -> dict:
        data = {
            "id": self.id,
            "from_user_id": self.from_user_id,
            "to_user_id": self.to_user_id,
            "point_type": self.point_type,
            "points": self.points,
            "goodjob_category_id": self.goodjob_category_id,
            "goodjob_free_text": self.goodjob_free_text,
            "message": self.message,
            "created_at": to_utc_z(self.created_at),
        }
        if include_users:
            data["from_user"] = _user_badge(self.from_user)
            data["to_user"] = _user_badge(self.to_user)
            data["goodjob_category"] = self.goodjob_category.to_dict() if self.goodjob_category else None
        return data


def _user_badge(user) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "nickname": user.nickname, "avatar_id": user.avatar_id}
