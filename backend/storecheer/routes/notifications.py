# Overview: Flask API routes for the signed-in user's notification inbox.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..services import notification_service
from .responses import SERVICE_FAILURES, failure, ok


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
def list_route():
    limit = request.args.get("limit", default=20, type=int)
    notifications = notification_service.list_notifications(g.current_user.id, limit=min(limit, 100))
    return ok(notifications=[n.to_dict() for n in notifications])


@notifications_bp.get("/unread-count")
@require_auth
def unread_count_route():
    return ok(count=notification_service.get_unread_count(g.current_user.id))


@notifications_bp.post("/<int:notification_id>/read")
@require_auth
def read_route(notification_id: int):
    try:
        notification = notification_service.mark_as_read(notification_id, user_id=g.current_user.id)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(notification=notification.to_dict())


@notifications_bp.post("/read-all")
@require_auth
def read_all_route():
    return ok(updated=notification_service.mark_all_as_read(g.current_user.id))
