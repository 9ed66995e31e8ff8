from __future__ import annotations

from ..extensions import db
from storecheer.time_utils import to_utc_z, utcnow

USER_ROLES = ("system_admin", "headquarters_admin", "area_manager", "manager", "staff")

# Roles allowed into the admin screens (user management, missions)
MANAGER_ROLES = ("system_admin", "headquarters_admin", "manager")


class User(db.Model):
    """
    Application-side user profile.

    `auth_id` references the identity provider's opaque user id. A row whose
    auth_id is NULL, or whose auth_id has no provider record, is a "ghost"
    and is eligible for reconciliation deletion.

    `is_active` is the soft-delete flag used by the admin screens; hard
    deletes only happen through ghost reconciliation.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_store_active", "primary_store_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    auth_id = db.Column(db.String(64), nullable=True, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    name = db.Column(db.String(120), nullable=False)
    nickname = db.Column(db.String(120), nullable=True)
    avatar_id = db.Column(db.String(64), nullable=False, default="default_01")

    # Free-text profile fields
    profile_text = db.Column(db.Text, nullable=True)
    strengths = db.Column(db.Text, nullable=True)
    weaknesses = db.Column(db.Text, nullable=True)
    hobbies = db.Column(db.Text, nullable=True)
    personality_type = db.Column(db.String(32), nullable=True)

    role = db.Column(db.String(32), nullable=False, default="staff")
    primary_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True)

    # Only raised by processes outside this service
    rank = db.Column(db.Integer, nullable=False, default=1)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    primary_store = db.relationship("Store", backref=db.backref("members", lazy=True))

    # Profile fields a user may edit on their own record
    EDITABLE_PROFILE_FIELDS = (
        "name", "nickname", "avatar_id", "profile_text", "strengths",
        "weaknesses", "hobbies", "personality_type",
    )

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "auth_id": self.auth_id,
            "email": self.email,
            "name": self.name,
            "nickname": self.nickname,
            "avatar_id": self.avatar_id,
            "profile_text": self.profile_text,
            "strengths": self.strengths,
            "weaknesses": self.weaknesses,
            "hobbies": self.hobbies,
            "personality_type": self.personality_type,
            "role": self.role,
            "primary_store_id": self.primary_store_id,
            "rank": self.rank,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class AuthIdentity(db.Model):
    """
    Credential record owned by the local identity provider.

    Plays the role of the external provider's user table when
    IDENTITY_PROVIDER=local: (id, email, credentials) and nothing else.
    Application data never references it except through User.auth_id.
    """
    __tablename__ = "auth_identities"

    id = db.Column(db.String(64), primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # bcrypt
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_sign_in_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
            "last_sign_in_at": to_utc_z(self.last_sign_in_at) if self.last_sign_in_at else None,
        }


class SessionToken(db.Model):
    """
    Access tokens issued by the local identity provider.

    Only the SHA-256 of a token is stored. Timeouts are enforced by
    services/session_service.py.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_identity_active", "auth_identity_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    auth_identity_id = db.Column(db.String(64), db.ForeignKey("auth_identities.id", ondelete="CASCADE"), nullable=False, index=True)

    # sha256 hex of the bearer token
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    auth_identity = db.relationship(
        "AuthIdentity",
        backref=db.backref("session_tokens", lazy=True, cascade="all, delete-orphan"),
    )
