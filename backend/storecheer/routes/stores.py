# Overview: Flask API routes for store listing and creation.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_role
from ..services import store_service
from .responses import SERVICE_FAILURES, failure, ok


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
def list_route():
    include_inactive = request.args.get("all", "false").lower() == "true"
    return ok(stores=[s.to_dict() for s in store_service.list_stores(include_inactive=include_inactive)])


@stores_bp.get("/<int:store_id>")
@require_auth
def detail_route(store_id: int):
    store = store_service.get_store(store_id)
    if not store:
        return jsonify({"success": False, "error": "Store not found"}), 404
    return ok(store=store.to_dict())


@stores_bp.post("")
@require_auth
@require_role("system_admin", "headquarters_admin")
def create_route():
    data = request.get_json(silent=True) or {}
    organization_id = data.get("organization_id")
    if not organization_id:
        return jsonify({"success": False, "error": "organization_id is required"}), 400

    try:
        store = store_service.create_store(
            organization_id=organization_id,
            name=data.get("name"),
            code=data.get("code"),
            address=data.get("address"),
            timezone=data.get("timezone"),
        )
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(201, store=store.to_dict())
