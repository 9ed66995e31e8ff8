from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app

from storecheer.extensions import db
from storecheer.models import Organization, Store, User
from storecheer.services.errors import ValidationFailure, NotFound


class StoreError(ValidationFailure):
    """Raised when store operations fail."""
    pass


def create_organization(name: str) -> Organization:
    if not name:
        raise StoreError("Organization name is required")

    org = Organization(name=name)
    db.session.add(org)
    db.session.commit()
    return org


def create_store(
    organization_id: int,
    name: str,
    code: str | None = None,
    address: str | None = None,
    timezone: str | None = None,
) -> Store:
    if not name:
        raise StoreError("Store name is required")

    if timezone:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise StoreError(f"Unknown timezone: {timezone}") from e

    org = db.session.query(Organization).filter_by(id=organization_id).first()
    if not org:
        raise NotFound("Organization not found")

    existing = db.session.query(Store).filter_by(organization_id=organization_id, name=name).first()
    if existing:
        raise StoreError("Store name already exists in this organization")

    store = Store(
        organization_id=organization_id,
        name=name,
        code=code,
        address=address,
        timezone=timezone,
    )
    db.session.add(store)
    db.session.commit()
    return store


def get_store(store_id: int) -> Store | None:
    return db.session.query(Store).filter_by(id=store_id).first()


def list_stores(include_inactive: bool = False) -> list[Store]:
    query = db.session.query(Store)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(Store.name.asc()).all()


def store_timezone(store: Store | None) -> str:
    if store is not None and store.timezone:
        return store.timezone
    return current_app.config.get("DEFAULT_TIMEZONE") or "UTC"


def user_timezone(user: User | None) -> str:
    """Timezone whose calendar day applies to the user (their primary store's)."""
    store = user.primary_store if user is not None else None
    return store_timezone(store)
