# Overview: Flask API routes for sign-in, sign-up, session lookup and sign-out.

"""
Authentication routes.

Credentials are checked by the configured identity provider; the returned
access token is sent back as `Authorization: Bearer <token>`.

Self-registration is off unless ALLOW_SELF_SIGNUP is set. Accounts are
normally created by administrators via POST /api/admin/users, which also
creates the linked user profile.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import user_service
from ..services.identity_provider import InvalidCredentials, get_identity_provider
from ..time_utils import to_utc_z
from .responses import SERVICE_FAILURES, failure, ok


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/sign-in")
def sign_in_route():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"success": False, "error": "email and password required"}), 400

    try:
        session = get_identity_provider().sign_in(email, password)
    except InvalidCredentials:
        return jsonify({"success": False, "error": "Invalid login credentials"}), 401
    except SERVICE_FAILURES as e:
        return failure(e)

    user = user_service.get_user_by_auth_id(session.identity.id)
    if not user or not user.is_active:
        return jsonify({"success": False, "error": "No active user profile is linked to this account"}), 403

    return ok(
        access_token=session.access_token,
        expires_at=to_utc_z(session.expires_at),
        user=user.to_dict(),
    )


@auth_bp.post("/sign-up")
def sign_up_route():
    if not current_app.config.get("ALLOW_SELF_SIGNUP"):
        return jsonify({
            "success": False,
            "error": "Self-registration is disabled. Contact an administrator to create an account.",
        }), 403

    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"success": False, "error": "email and password required"}), 400

    try:
        identity = get_identity_provider().sign_up(email, password)
    except SERVICE_FAILURES as e:
        return failure(e)

    return ok(201, identity=identity.to_dict())


@auth_bp.get("/me")
@require_auth
def me_route():
    ctx = g.context
    return ok(
        user=ctx.user.to_dict(),
        store=ctx.user.primary_store.to_dict() if ctx.user.primary_store else None,
        identity=ctx.identity.to_dict(),
    )


@auth_bp.post("/sign-out")
@require_auth
def sign_out_route():
    try:
        get_identity_provider().sign_out(g.context.access_token)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(message="Signed out")
