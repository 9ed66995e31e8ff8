from __future__ import annotations

from ..extensions import db
from storecheer.time_utils import to_utc_z, utcnow

class AttendanceRecord(db.Model):
    """
    One clock-in / clock-out pair.

    LIFECYCLE:
    - open: clock_out IS NULL, shift in progress
    - closed: clock_out set, never reopened

    At most one open record per user. The partial unique index below is the
    storage-level guard; attendance_service checks first for a clean error.
    """
    __tablename__ = "attendance_records"
    __table_args__ = (
        db.Index(
            "uq_attendance_open_per_user",
            "user_id",
            unique=True,
            sqlite_where=db.text("clock_out IS NULL"),
            postgresql_where=db.text("clock_out IS NULL"),
        ),
        db.Index("ix_attendance_store_clock_in", "store_id", "clock_in"),
        db.Index("ix_attendance_user_clock_in", "user_id", "clock_in"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)

    clock_in = db.Column(db.DateTime(timezone=True), nullable=False)
    clock_out = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("attendance_records", lazy=True))
    store = db.relationship("Store")

    @property
    def is_open(self) -> bool:
        return self.clock_out is None

    def to_dict(self, include_store: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "store_id": self.store_id,
            "clock_in": to_utc_z(self.clock_in),
            "clock_out": to_utc_z(self.clock_out) if self.clock_out else None,
            "created_at": to_utc_z(self.created_at),
        }
        if include_store:
            data["store"] = self.store.to_dict() if self.store else None
        return data
