# backend/pos/routes/system.py
"""
System health endpoint.

Checks the two storage dependencies: the key-value medium behind the data
store and the session table.
"""

import time
from flask import Blueprint, current_app
from ..context import get_store
from ..extensions import db
from ..models import SessionToken
from ..services.store_service import ALL_KEYS, StorageError
from pos.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_store_health() -> dict:
    """Confirm every collection key can be read from the medium."""
    start_time = time.time()
    try:
        backend = get_store().backend
        present = [key for key in ALL_KEYS if backend.get(key) is not None]
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"keys_present": present},
        }
    except StorageError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Store error",
        }


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
        expired_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(False),
        ).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "active_sessions": active_sessions,
                "expired_pending_cleanup": expired_sessions,
            },
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: all checks healthy
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    store_health = check_store_health()
    session_health = check_session_service_health()

    unhealthy = any(c["status"] == "unhealthy" for c in (store_health, session_health))
    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": "unhealthy" if unhealthy else "healthy",
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "store": store_health,
            "session_service": session_health,
        },
    }
    return response, 503 if unhealthy else 200
