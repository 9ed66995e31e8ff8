# Overview: Flask API routes for user administration and ghost-user reconciliation.

"""
Administration routes.

User management is open to managers (own store only), headquarters admins
and system admins. Ghost reconciliation is restricted to system admins and
always runs as two requests: a read-only check, then an explicit delete of
the ids the operator chose from the check result.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..models import MANAGER_ROLES
from ..services import reconciliation_service, user_service
from .responses import SERVICE_FAILURES, failure, ok


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_auth
@require_role(*MANAGER_ROLES)
def list_users_route():
    try:
        users = user_service.list_users_for(g.current_user)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(users=[u.to_dict() for u in users])

@admin_bp.post("/users")
@require_auth
@require_role(*MANAGER_ROLES)
def create_user_route():
    """
    Create a provider account and the linked user row.

    Body: {email, password, name, nickname?, role?, primary_store_id?}
    A manager's new user defaults to the manager's own store.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    name = data.get("name")

    if not email or not password or not name:
        return jsonify({"success": False, "error": "email, password, and name are required"}), 400

    primary_store_id = data.get("primary_store_id")
    if primary_store_id is None and g.current_user.role == "manager":
        primary_store_id = g.current_user.primary_store_id

    try:
        user = user_service.admin_create_user(
            actor=g.current_user,
            email=email,
            password=password,
            name=name,
            nickname=data.get("nickname"),
            role=data.get("role", "staff"),
            primary_store_id=primary_store_id,
        )
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(201, user=user.to_dict())

@admin_bp.post("/users/<int:user_id>/active")
@require_auth
@require_role(*MANAGER_ROLES)
def set_active_route(user_id: int):
    data = request.get_json(silent=True) or {}
    if "is_active" not in data:
        return jsonify({"success": False, "error": "is_active is required"}), 400

    try:
        user = user_service.set_active(actor=g.current_user, user_id=user_id, is_active=bool(data["is_active"]))
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(user=user.to_dict())

@admin_bp.get("/ghosts")
@require_auth
@require_role("system_admin")
def check_ghosts_route():
    try:
        report = reconciliation_service.check_ghost_users()
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(**report.to_dict())

@admin_bp.post("/ghosts/delete")
@require_auth
@require_role("system_admin")
def delete_ghosts_route():
    data = request.get_json(silent=True) or {}
    try:
        report = reconciliation_service.execute_ghost_deletion(
            data.get("ghost_user_ids") or [],
            confirm=bool(data.get("confirm")),
        )
    except SERVICE_FAILURES as e:
        return failure(e)

    current_app.logger.info(
        "Ghost deletion requested by user %s: deleted %s, skipped %s",
        g.current_user.id, report.deleted_user_ids, report.skipped_user_ids,
    )
    return ok(**report.to_dict())
