# Overview: Service-layer operations for user profiles and admin account creation.

"""
User Directory Service

WHY: User rows are the application's view of a person; credentials live in
the identity provider. Admin account creation therefore writes twice:
provider first, database second. There is no distributed transaction, so a
database failure after the provider write is reported as a
ConsistencyFailure naming the orphaned auth id. No automatic rollback of the
provider user is attempted; the orphan can be removed by hand (it is not a
ghost, since ghosts are database rows without a provider account).
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Store, User, USER_ROLES
from .auth_service import normalize_email
from .errors import ConsistencyFailure, NotFound, ValidationFailure
from .identity_provider import get_identity_provider

logger = logging.getLogger(__name__)

# Roles a store manager may hand out
MANAGER_ASSIGNABLE_ROLES = ("staff", "manager")


class UserError(ValidationFailure):
    """Raised for invalid user operations."""
    pass


def _validate_new_user(email: str, name: str, role: str, primary_store_id: int | None) -> str:
    email = normalize_email(email)
    if not email or not name:
        raise UserError("email and name are required")

    if role not in USER_ROLES:
        raise UserError(f"Invalid role: {role}")

    if primary_store_id is not None:
        store = db.session.query(Store).filter_by(id=primary_store_id).first()
        if not store:
            raise NotFound("Store not found")

    if db.session.query(User).filter_by(email=email).first():
        raise UserError("A user with this email already exists")

    return email


def create_user(
    email: str,
    name: str,
    nickname: str | None = None,
    role: str = "staff",
    primary_store_id: int | None = None,
    auth_id: str | None = None,
) -> User:
    """Insert a user row. auth_id may be None (the row is then a ghost)."""
    email = _validate_new_user(email, name, role, primary_store_id)

    user = User(
        email=email,
        name=name,
        nickname=nickname or name,
        role=role,
        primary_store_id=primary_store_id,
        auth_id=auth_id,
        avatar_id="default_01",
        rank=1,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def check_can_manage(actor: User, *, store_id: int | None, role: str | None = None) -> None:
    """
    Enforce the admin-screen scope rules.

    - system_admin / headquarters_admin: any store
    - manager: own store only, and only staff/manager roles
    - only a system_admin may create another system_admin
    """
    if not actor.is_manager:
        raise UserError("This operation is restricted to managers and administrators")

    if role == "system_admin" and actor.role != "system_admin":
        raise UserError("Only a system administrator can grant system_admin")

    if actor.role == "manager":
        if store_id is None or store_id != actor.primary_store_id:
            raise UserError("Managers can only manage users of their own store")
        if role is not None and role not in MANAGER_ASSIGNABLE_ROLES:
            raise UserError(f"Managers cannot assign role {role}")


def admin_create_user(
    *,
    actor: User,
    email: str,
    password: str,
    name: str,
    nickname: str | None = None,
    role: str = "staff",
    primary_store_id: int | None = None,
) -> User:
    """
    Create the provider account, then the user row linked to it.

    Raises:
        ValidationFailure: bad input or outside the actor's scope (nothing written)
        AdapterFailure: provider rejected or unreachable (nothing written)
        ConsistencyFailure: provider account exists but the row could not be saved
    """
    check_can_manage(actor, store_id=primary_store_id, role=role)
    return provision_user(
        email=email,
        password=password,
        name=name,
        nickname=nickname,
        role=role,
        primary_store_id=primary_store_id,
    )


def provision_user(
    *,
    email: str,
    password: str,
    name: str,
    nickname: str | None = None,
    role: str = "staff",
    primary_store_id: int | None = None,
) -> User:
    """Provider account plus user row, without actor scope checks (CLI bootstrap)."""
    if not password:
        raise UserError("password is required")
    email = _validate_new_user(email, name, role, primary_store_id)

    auth_id = get_identity_provider().admin_create_user(email, password)

    try:
        return create_user(
            email=email,
            name=name,
            nickname=nickname,
            role=role,
            primary_store_id=primary_store_id,
            auth_id=auth_id,
        )
    except (SQLAlchemyError, ValidationFailure) as e:
        db.session.rollback()
        logger.error(
            "Auth user %s created for %s but the user row could not be saved: %s",
            auth_id, email, e,
        )
        raise ConsistencyFailure(
            f"Auth user {auth_id} ({email}) was created but the user record could not be "
            f"saved: {e}. The auth user was NOT rolled back; remove it from the identity "
            f"provider or link it manually.",
            orphaned_auth_id=auth_id,
        ) from e


def get_user(user_id: int) -> User | None:
    return db.session.query(User).filter_by(id=user_id).first()


def get_user_by_auth_id(auth_id: str) -> User | None:
    if not auth_id:
        return None
    return db.session.query(User).filter_by(auth_id=auth_id).first()


def get_store_members(store_id: int) -> list[User]:
    """Active members of a store, highest rank first."""
    return (
        db.session.query(User)
        .filter_by(primary_store_id=store_id, is_active=True)
        .order_by(User.rank.desc(), User.id.asc())
        .all()
    )


def list_users_for(actor: User, include_inactive: bool = True) -> list[User]:
    """Users visible in the admin screen: a manager sees their store, admins see everyone."""
    check_can_manage(actor, store_id=actor.primary_store_id if actor.role == "manager" else None)

    query = db.session.query(User)
    if actor.role == "manager":
        query = query.filter_by(primary_store_id=actor.primary_store_id)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def update_profile(user_id: int, updates: dict) -> User:
    """Apply profile edits. Only User.EDITABLE_PROFILE_FIELDS are accepted."""
    user = get_user(user_id)
    if not user:
        raise NotFound("User not found")

    unknown = set(updates) - set(User.EDITABLE_PROFILE_FIELDS)
    if unknown:
        raise UserError(f"Fields not editable: {', '.join(sorted(unknown))}")

    if "name" in updates and not updates["name"]:
        raise UserError("name cannot be empty")

    for field, value in updates.items():
        setattr(user, field, value)

    db.session.commit()
    return user


def set_active(*, actor: User, user_id: int, is_active: bool) -> User:
    """Soft-delete or restore a user."""
    user = get_user(user_id)
    if not user:
        raise NotFound("User not found")

    check_can_manage(actor, store_id=user.primary_store_id)
    if user.id == actor.id and not is_active:
        raise UserError("You cannot deactivate your own account")

    user.is_active = bool(is_active)
    db.session.commit()
    return user
