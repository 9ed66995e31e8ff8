from __future__ import annotations

from ..extensions import db
from storecheer.time_utils import to_utc_z

class Organization(db.Model):
    """
    Top-level owner of stores, goodjob categories and skill masters.

    WHY: Skill trees and goodjob categories are defined once per company and
    shared by all of its stores.
    """
    __tablename__ = "organizations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }

class Store(db.Model):
    """
    Store within an organization.

    Store names and codes are unique within an organization, not globally.
    `timezone` decides where the calendar day starts for daily point limits,
    attendance and missions of the store's members.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "name", name="uq_stores_org_name"),
        db.UniqueConstraint("organization_id", "code", name="uq_stores_org_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=True, index=True)
    address = db.Column(db.String(255), nullable=True)

    # IANA zone name; None falls back to DEFAULT_TIMEZONE
    timezone = db.Column(db.String(64), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("stores", lazy=True))

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "code": self.code,
            "address": self.address,
            "timezone": self.timezone,
            "is_active": self.is_active,
        }
