# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/pos/routes/auth.py
"""
Authentication API routes

Login hands back an opaque bearer token; the token must be sent as
`Authorization: Bearer <token>` on every protected route. Logout revokes it.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..context import get_store
from ..services import auth_service
from ..services import session_service
from ..services.auth_service import AuthError
from ..validation import USER_POLICY, validate_payload, ValidationError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info (never the password) and the session token.
    """
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username and password required"}), 400

        user = auth_service.authenticate(get_store(), username, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user,
            hours=current_app.config["SESSION_HOURS"],
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.public_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the current session token."""
    token = request.headers.get("Authorization").split(" ", 1)[1]
    session_service.revoke_session(token, reason="User logout")
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.public_dict()}), 200


@auth_bp.patch("/me")
@require_auth
def update_me_route():
    """Change the caller's own username and/or password."""
    try:
        patch = validate_payload(payload=request.get_json(silent=True), policy=USER_POLICY, partial=True)
        user = auth_service.update_user(
            get_store(),
            g.current_user.id,
            username=patch.get("username"),
            password=patch.get("password"),
        )
        return jsonify({"user": user.public_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AuthError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to update current user")
        return jsonify({"error": "Internal server error"}), 500
