from __future__ import annotations

from ..extensions import db
from storecheer.time_utils import to_utc_z, utcnow

MISSION_STATUSES = ("active", "completed", "cancelled")


class Mission(db.Model):
    """
    Daily store mission with an optional numeric target.

    LIFECYCLE:
    - active -> completed: when target_value is set and current_value >= target_value
    - active -> cancelled: by a manager
    Completed and cancelled are terminal.
    """
    __tablename__ = "missions"
    __table_args__ = (
        db.Index("ix_missions_store_date", "store_id", "target_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    icon = db.Column(db.String(16), nullable=False, default="🎯")

    target_date = db.Column(db.Date, nullable=False)
    target_value = db.Column(db.Integer, nullable=True)
    current_value = db.Column(db.Integer, nullable=False, default=0)
    points = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    store = db.relationship("Store", backref=db.backref("missions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "target_date": self.target_date.isoformat(),
            "target_value": self.target_value,
            "current_value": self.current_value,
            "points": self.points,
            "status": self.status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
        }
