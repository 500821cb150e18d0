# Overview: Service-layer operations for auth; user lookup and credential checks against the store.

"""
Authentication Service

Users are kept in the `pos-users` collection. Passwords are compared as
stored (plaintext); the seeded demo accounts are admin/password and
cashier/password. Session tokens are managed separately (see
session_service.py).
"""
from __future__ import annotations

import logging

from ..models import StoredUser
from ..validation import NotFoundError
from .store_service import DataStore

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised for authentication and account errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def list_users(store: DataStore) -> list[StoredUser]:
    return store.users()


def get_user(store: DataStore, user_id: int) -> StoredUser | None:
    return next((u for u in store.users() if u.id == user_id), None)


def get_user_by_username(store: DataStore, username: str) -> StoredUser | None:
    return next((u for u in store.users() if u.username == username), None)


def authenticate(store: DataStore, username: str, password: str) -> StoredUser | None:
    """
    Returns the matching user, or None.

    Both a wrong username and a wrong password yield None so callers cannot
    tell which one failed.
    """
    if not username or password is None:
        return None
    user = get_user_by_username(store, username)
    if user is None or user.password != password:
        logger.info("Failed login attempt for %s", username)
        return None
    return user


def update_user(
    store: DataStore,
    user_id: int,
    *,
    username: str | None = None,
    password: str | None = None,
) -> StoredUser:
    """
    Change a user's username and/or password.

    A blank password leaves the current one in place. Usernames stay unique.
    """
    users = store.users()
    user = next((u for u in users if u.id == user_id), None)
    if user is None:
        raise NotFoundError("User not found")

    if username is not None:
        username = username.strip()
        if not username:
            raise AuthError("Username cannot be blank")
        clash = next((u for u in users if u.username == username and u.id != user_id), None)
        if clash is not None:
            raise AuthError("Username already exists", details={"username": username})
        user.username = username

    if password is not None and password.strip():
        user.password = password

    store.save_users(users)
    return user
