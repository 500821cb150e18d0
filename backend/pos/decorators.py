# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .context import get_store
from .models import Role
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user")


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_user: the StoredUser, re-read from the store
    - g.session_context: the full SessionContext

    Returns 401 if the Authorization header is missing, or the token is
    unknown, revoked or expired.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(get_store(), token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: Role):
    """Require the authenticated user to hold one of `roles`. Use after @require_auth."""
    allowed = {Role(r) for r in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_user.role not in allowed:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": sorted(r.value for r in allowed),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


require_admin = require_role(Role.ADMIN)
