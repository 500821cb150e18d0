# Overview: Service-layer operations for session; encapsulates token issuing and validation.

"""
Session Token Management Service

Holds the session-scoped "current user". The token handed to the client is
random; only its SHA-256 hash is stored, with an absolute expiry taken from
SESSION_HOURS. Logout revokes the token.

Each validation re-reads the user from the store, so a renamed user shows up
with the new name and a removed user loses the session.
"""
from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, StoredUser
from pos.time_utils import utcnow
from .store_service import DataStore

DEFAULT_SESSION_HOURS = 12


@dataclass
class SessionContext:
    user: StoredUser
    session: SessionToken


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy); never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    user: StoredUser,
    *,
    hours: int = DEFAULT_SESSION_HOURS,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for an authenticated user.

    Returns (session_record, plaintext_token).
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        username=user.username,
        role=user.role.value,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + timedelta(hours=hours),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(store: DataStore, token: str) -> SessionContext | None:
    """
    Returns a SessionContext for a live token, or None when the token is
    unknown, revoked or expired, or its user no longer exists.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    user = next((u for u in store.users() if u.id == session.user_id), None)
    if user is None:
        _revoke(session, "User removed")
        db.session.commit()
        return None

    session.username = user.username
    session.role = user.role.value
    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=user, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns True if a live session was revoked, False if none matched."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    for session in sessions:
        _revoke(session, reason)
    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions(days: int = 30) -> int:
    """Delete expired or revoked sessions created more than `days` ago."""
    cutoff = utcnow() - timedelta(days=days)
    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
