# Overview: Per-request access to the data store, the reporting zone and operator notices.

from __future__ import annotations

from datetime import tzinfo

from flask import current_app, g

from .services.store_service import DataStore
from .time_utils import resolve_zone

BACKEND_EXTENSION = "pos_backend"


def push_notice(message: str) -> None:
    """Queue a message for the operator; attached to the JSON response."""
    notices = g.setdefault("pos_notices", [])
    if message not in notices:
        notices.append(message)


def pop_notices() -> list[str]:
    return g.pop("pos_notices", [])


def get_store() -> DataStore:
    """
    DataStore bound to the app's backend, created once per request.

    The first store handed out by an app runs first-run seeding.
    """
    if "pos_store" not in g:
        app = current_app._get_current_object()
        store = DataStore(app.extensions[BACKEND_EXTENSION], notify=push_notice)
        if not app.extensions.get("pos_initialized"):
            seeded = store.initialize(seed_demo=app.config["POS_SEED_DEMO_DATA"])
            if seeded:
                app.logger.info("Seeded store keys: %s", ", ".join(seeded))
            # A failed seed (e.g. missing tables) is retried on the next request
            app.extensions["pos_initialized"] = store.is_initialized()
        g.pos_store = store
    return g.pos_store


def get_zone() -> tzinfo:
    return resolve_zone(current_app.config.get("POS_TIMEZONE"))
