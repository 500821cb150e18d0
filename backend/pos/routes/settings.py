from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..context import get_store
from ..decorators import require_auth, require_admin
from ..services import settings_service
from ..services.settings_service import SettingsError
from ..validation import SETTINGS_POLICY, ValidationError, validate_payload


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def get_settings():
    # Every role reads settings: the register needs the currency and sound toggle
    return jsonify({"settings": settings_service.get_settings(get_store()).to_dict()}), 200


@settings_bp.patch("")
@require_auth
@require_admin
def update_settings():
    try:
        patch = validate_payload(payload=request.get_json(silent=True), policy=SETTINGS_POLICY, partial=True)
        settings = settings_service.update_settings(get_store(), patch)
    except (ValidationError, SettingsError) as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"settings": settings.to_dict()}), 200
