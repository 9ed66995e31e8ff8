# Overview: Flask API routes for clock-in/out and store presence.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..services import attendance_service
from ..time_utils import to_utc_z
from .responses import SERVICE_FAILURES, failure, ok


attendance_bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


@attendance_bp.post("/clock-in")
@require_auth
def clock_in_route():
    data = request.get_json(silent=True) or {}
    store_id = data.get("store_id") or g.context.store_id

    if not store_id:
        return jsonify({"success": False, "error": "store_id is required"}), 400

    try:
        record = attendance_service.clock_in(g.current_user.id, store_id)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(201, attendance=record.to_dict(include_store=True))


@attendance_bp.post("/clock-out")
@require_auth
def clock_out_route():
    data = request.get_json(silent=True) or {}
    attendance_id = data.get("attendance_id")

    if not attendance_id:
        current = attendance_service.get_open_attendance(g.current_user.id)
        if not current:
            return jsonify({"success": False, "error": "User is not clocked in"}), 400
        attendance_id = current.id

    try:
        record = attendance_service.clock_out(attendance_id, user_id=g.current_user.id)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(attendance=record.to_dict(include_store=True))


@attendance_bp.get("/current")
@require_auth
def current_route():
    record = attendance_service.get_current_attendance(g.current_user.id)
    return ok(
        is_working=record is not None,
        attendance=record.to_dict(include_store=True) if record else None,
    )


@attendance_bp.get("/working")
@require_auth
def working_members_route():
    store_id = request.args.get("store_id", type=int) or g.context.store_id
    if not store_id:
        return jsonify({"success": False, "error": "store_id is required"}), 400

    try:
        rows = attendance_service.get_working_members(store_id)
    except SERVICE_FAILURES as e:
        return failure(e)

    members = []
    for user, clock_in in rows:
        d = user.to_dict()
        d["clock_in"] = to_utc_z(clock_in)
        members.append(d)
    return ok(members=members, count=len(members))


@attendance_bp.get("/history")
@require_auth
def history_route():
    limit = request.args.get("limit", default=attendance_service.HISTORY_LIMIT, type=int)
    records = attendance_service.get_attendance_history(g.current_user.id, limit=min(limit, 200))
    return ok(records=[r.to_dict(include_store=True) for r in records])
