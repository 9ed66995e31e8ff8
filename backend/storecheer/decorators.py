# Overview: Request authentication and role decorators for API routes.

from dataclasses import dataclass
from functools import wraps

from flask import g, jsonify, request

from .models import User
from .services import user_service
from .services.errors import AdapterFailure
from .services.identity_provider import AuthIdentityRecord, get_identity_provider


@dataclass
class RequestContext:
    """
    Per-request session context.

    Built by @require_auth from the bearer token and discarded with the
    request; nothing about the caller is cached process-wide.
    """
    user: User
    identity: AuthIdentityRecord
    access_token: str

    @property
    def store_id(self) -> int | None:
        return self.user.primary_store_id

    @property
    def organization_id(self) -> int | None:
        store = self.user.primary_store
        return store.organization_id if store else None


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid provider session that maps to an active user row.

    Sets:
    - g.current_user: the User row linked to the session's auth id
    - g.context: the RequestContext for this request

    Returns 401 for a missing/invalid token, an identity without a user row,
    or a deactivated user; 502 when the provider cannot be reached.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"success": False, "error": "Authentication required"}), 401

        try:
            identity = get_identity_provider().get_current_user(token)
        except AdapterFailure as e:
            return jsonify({"success": False, "error": str(e)}), 502

        if not identity:
            return jsonify({"success": False, "error": "Invalid or expired token"}), 401

        user = user_service.get_user_by_auth_id(identity.id)
        if not user:
            return jsonify({"success": False, "error": "No user profile is linked to this account"}), 401
        if not user.is_active:
            return jsonify({"success": False, "error": "User account is deactivated"}), 401

        g.current_user = user
        g.context = RequestContext(user=user, identity=identity, access_token=token)

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Require the authenticated user to hold one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"success": False, "error": "Authentication required"}), 401

            if g.current_user.role not in roles:
                return jsonify({
                    "success": False,
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
