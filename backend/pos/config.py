# backend/pos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/pos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Zone used to turn stored ISO timestamps into calendar days for reports
    POS_TIMEZONE = os.environ.get("POS_TIMEZONE", "UTC")

    # First run seeds the demo catalog and the admin/cashier accounts
    POS_SEED_DEMO_DATA = os.environ.get("POS_SEED_DEMO_DATA", "true").lower() == "true"

    SESSION_HOURS = int(os.environ.get("SESSION_HOURS", "12"))
