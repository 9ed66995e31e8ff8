# Overview: Flask API routes for the store member directory and profile edits.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..services import point_service, user_service
from .responses import SERVICE_FAILURES, failure, ok


members_bp = Blueprint("members", __name__, url_prefix="/api/members")


@members_bp.get("")
@require_auth
def list_route():
    store_id = request.args.get("store_id", type=int) or g.context.store_id
    if not store_id:
        return ok(members=[])
    return ok(members=[u.to_dict() for u in user_service.get_store_members(store_id)])


@members_bp.get("/<int:user_id>")
@require_auth
def detail_route(user_id: int):
    user = user_service.get_user(user_id)
    if not user or not user.is_active:
        return jsonify({"success": False, "error": "User not found"}), 404

    return ok(user=user.to_dict(), summary=point_service.get_point_summary(user.id))


@members_bp.patch("/me")
@require_auth
def update_me_route():
    data = request.get_json(silent=True) or {}
    if not data:
        return jsonify({"success": False, "error": "No fields to update"}), 400

    try:
        user = user_service.update_profile(g.current_user.id, data)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(user=user.to_dict())
