# Overview: Flask API routes for sending points, allowances, summaries, history and rankings.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..models import MANAGER_ROLES
from ..services import point_service
from .responses import SERVICE_FAILURES, failure, ok


points_bp = Blueprint("points", __name__, url_prefix="/api/points")


@points_bp.post("/send")
@require_auth
def send_points_route():
    data = request.get_json(silent=True) or {}
    to_user_id = data.get("to_user_id")
    point_type = data.get("point_type")
    points = data.get("points")

    if not to_user_id or not point_type or points is None:
        return jsonify({"success": False, "error": "to_user_id, point_type, and points are required"}), 400

    try:
        txn = point_service.send_points(
            from_user_id=g.current_user.id,
            to_user_id=to_user_id,
            point_type=point_type,
            points=points,
            message=data.get("message"),
            goodjob_category_id=data.get("goodjob_category_id"),
            goodjob_free_text=data.get("goodjob_free_text"),
        )
    except SERVICE_FAILURES as e:
        return failure(e)

    return ok(
        201,
        transaction=txn.to_dict(),
        remaining=point_service.remaining_daily_allowance(g.current_user.id),
    )


@points_bp.get("/remaining")
@require_auth
def remaining_route():
    return ok(remaining=point_service.remaining_daily_allowance(g.current_user.id))


@points_bp.get("/summary")
@require_auth
def summary_route():
    user_id = request.args.get("user_id", type=int) or g.current_user.id
    return ok(user_id=user_id, summary=point_service.get_point_summary(user_id))


@points_bp.get("/history")
@require_auth
def history_route():
    direction = request.args.get("direction") or None
    try:
        transactions = point_service.get_point_history(g.current_user.id, direction=direction)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(transactions=[t.to_dict(include_users=True) for t in transactions])


@points_bp.get("/ranking")
@require_auth
def ranking_route():
    point_type = request.args.get("type", "thanks")
    store_id = request.args.get("store_id", type=int) or g.context.store_id
    if not store_id:
        return jsonify({"success": False, "error": "store_id is required"}), 400

    try:
        ranking = point_service.get_store_ranking(store_id, point_type, viewer_id=g.current_user.id)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(**ranking)


@points_bp.get("/categories")
@require_auth
def list_categories_route():
    org_id = g.context.organization_id
    if not org_id:
        return ok(categories=[])
    return ok(categories=[c.to_dict() for c in point_service.list_goodjob_categories(org_id)])


@points_bp.post("/categories")
@require_auth
def create_category_route():
    if g.current_user.role not in MANAGER_ROLES:
        return jsonify({"success": False, "error": "Permission denied"}), 403

    org_id = g.context.organization_id
    if not org_id:
        return jsonify({"success": False, "error": "User has no store organization"}), 400

    data = request.get_json(silent=True) or {}
    try:
        category = point_service.create_goodjob_category(
            organization_id=org_id,
            name=data.get("name"),
            description=data.get("description"),
            icon=data.get("icon"),
            sort_order=data.get("sort_order", 0),
        )
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(201, category=category.to_dict())
