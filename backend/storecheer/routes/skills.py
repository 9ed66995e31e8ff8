# Overview: Flask API routes for the skill tree and skill certification.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_role
from ..models import MANAGER_ROLES
from ..services import skill_service, user_service
from ..services.errors import NotFound
from .responses import SERVICE_FAILURES, failure, ok


skills_bp = Blueprint("skills", __name__, url_prefix="/api/skills")


@skills_bp.get("/tree")
@require_auth
def tree_route():
    org_id = g.context.organization_id
    if not org_id:
        return ok(tree={"total": 0, "acquired": 0, "categories": []})

    user_id = request.args.get("user_id", type=int) or g.current_user.id
    return ok(tree=skill_service.get_skill_tree(org_id, user_id))


@skills_bp.post("")
@require_auth
@require_role("system_admin", "headquarters_admin")
def create_route():
    org_id = g.context.organization_id
    if not org_id:
        return jsonify({"success": False, "error": "User has no store organization"}), 400

    data = request.get_json(silent=True) or {}
    try:
        skill = skill_service.create_skill(
            organization_id=org_id,
            name=data.get("name"),
            category=data.get("category"),
            description=data.get("description"),
            level=data.get("level", 1),
            icon=data.get("icon"),
            sort_order=data.get("sort_order", 0),
        )
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(201, skill=skill.to_dict())


@skills_bp.post("/acquisitions")
@require_auth
@require_role(*MANAGER_ROLES)
def acquire_route():
    """Certify a skill for a member of a store the caller manages."""
    data = request.get_json(silent=True) or {}
    user_id = data.get("user_id")
    skill_id = data.get("skill_id")
    if not user_id or not skill_id:
        return jsonify({"success": False, "error": "user_id and skill_id are required"}), 400

    try:
        target = user_service.get_user(user_id)
        if not target:
            raise NotFound("User not found")
        user_service.check_can_manage(g.current_user, store_id=target.primary_store_id)
        acquisition = skill_service.acquire_skill(user_id, skill_id, certified_by=g.current_user.id)
    except SERVICE_FAILURES as e:
        return failure(e)
    return ok(201, acquisition=acquisition.to_dict())
