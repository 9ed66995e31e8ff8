from __future__ import annotations

from ..extensions import db
from storecheer.time_utils import to_utc_z, utcnow

class Skill(db.Model):
    """Skill master: one certifiable skill in an organization's skill tree."""
    __tablename__ = "skill_masters"
    __table_args__ = (
        db.Index("ix_skill_masters_org_category", "organization_id", "category", "sort_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    level = db.Column(db.Integer, nullable=False, default=1)
    icon = db.Column(db.String(16), nullable=False, default="📘")
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "level": self.level,
            "icon": self.icon,
            "sort_order": self.sort_order,
        }


class SkillAcquisition(db.Model):
    """A skill certified for a user by a manager. One row per (user, skill)."""
    __tablename__ = "skill_acquisitions"
    __table_args__ = (
        db.UniqueConstraint("user_id", "skill_id", name="uq_skill_acquisitions_user_skill"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = db.Column(db.Integer, db.ForeignKey("skill_masters.id"), nullable=False)
    certified_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    acquired_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    skill = db.relationship("Skill")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "skill_id": self.skill_id,
            "certified_by": self.certified_by,
            "acquired_at": to_utc_z(self.acquired_at),
            "skill": self.skill.to_dict() if self.skill else None,
        }
