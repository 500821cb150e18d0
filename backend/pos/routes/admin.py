# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/pos/routes/admin.py
"""
Admin routes for user management.

Accounts are fixed (admin and cashier); admins can list them and change any
account's username or password. Passwords are never returned.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..context import get_store
from ..services import auth_service, session_service
from ..services.auth_service import AuthError
from ..validation import USER_POLICY, validate_payload, ValidationError, NotFoundError
from ..decorators import require_auth, require_admin

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_auth
@require_admin
def list_users():
    users = auth_service.list_users(get_store())
    return jsonify({"users": [u.public_dict() for u in users]}), 200


@admin_bp.get("/users/<int:user_id>")
@require_auth
@require_admin
def get_user(user_id: int):
    user = auth_service.get_user(get_store(), user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"user": user.public_dict()}), 200


@admin_bp.patch("/users/<int:user_id>")
@require_auth
@require_admin
def update_user(user_id: int):
    """
    Update username and/or password.

    A blank or missing password keeps the current one. Resetting another
    user's password signs that user out everywhere.
    """
    try:
        patch = validate_payload(payload=request.get_json(silent=True), policy=USER_POLICY, partial=True)
        user = auth_service.update_user(
            get_store(),
            user_id,
            username=patch.get("username"),
            password=patch.get("password"),
        )
        if patch.get("password") and user.id != g.current_user.id:
            revoked = session_service.revoke_all_user_sessions(user.id, reason="Password reset by admin")
            current_app.logger.info("Revoked %d session(s) for user %s", revoked, user.username)
        return jsonify({"user": user.public_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AuthError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500
