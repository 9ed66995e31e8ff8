# Overview: Flask API routes for daily missions and progress updates.

from datetime import date

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_role
from ..models import MANAGER_ROLES
from ..services import mission_service
from .responses import SERVICE_FAILURES, failure, ok


missions_bp = Blueprint("missions", __name__, url_prefix="/api/missions")


@missions_bp.get("/today")
@require_auth
def today_route():
    store_id = request.args.get("store_id", type=int) or g.context.store_id
    if not store_id:
        return jsonify({"success": False, "error": "store_id is required"}), 400

    try:
        mission_service.check_store_scope(g.current_user, store_id)
        missions = mission_service.get_today_missions(store_id)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(missions=[m.to_dict() for m in missions])


@missions_bp.post("")
@require_auth
@require_role(*MANAGER_ROLES)
def create_route():
    data = request.get_json(silent=True) or {}
    store_id = data.get("store_id") or g.context.store_id
    target_date = data.get("target_date")

    if not store_id or not data.get("name") or not target_date:
        return jsonify({"success": False, "error": "store_id, name, and target_date are required"}), 400

    try:
        parsed_date = date.fromisoformat(target_date)
    except (TypeError, ValueError):
        return jsonify({"success": False, "error": "Invalid target_date"}), 400

    try:
        mission = mission_service.create_mission(
            store_id=store_id,
            name=data["name"],
            target_date=parsed_date,
            points=data.get("points", 0),
            target_value=data.get("target_value"),
            description=data.get("description"),
            icon=data.get("icon"),
            created_by=g.current_user.id,
            actor=g.current_user,
        )
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(201, mission=mission.to_dict())


@missions_bp.post("/<int:mission_id>/progress")
@require_auth
def progress_route(mission_id: int):
    data = request.get_json(silent=True) or {}
    if "value" not in data:
        return jsonify({"success": False, "error": "value is required"}), 400

    try:
        mission = mission_service.update_progress(mission_id, data["value"], actor=g.current_user)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(mission=mission.to_dict())


@missions_bp.post("/<int:mission_id>/cancel")
@require_auth
@require_role(*MANAGER_ROLES)
def cancel_route(mission_id: int):
    try:
        mission = mission_service.cancel_mission(mission_id, actor=g.current_user)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(mission=mission.to_dict())
