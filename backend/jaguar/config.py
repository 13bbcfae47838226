# backend/jaguar/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/jaguar.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///jaguar.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" persists through SQLAlchemy; "memory" keeps everything in process
    # (stands in for the frontend's mock API during local development)
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "sql")

    # Unpaid reservations expire after this many days
    RESERVATION_WINDOW_DAYS = int(os.environ.get("RESERVATION_WINDOW_DAYS", "7"))

    # Dashboard: reservations expiring within this many hours count as "por vencer"
    EXPIRING_SOON_HOURS = int(os.environ.get("EXPIRING_SOON_HOURS", "24"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    }

    # Seeds demo suppliers/orders/bundles/lists into the memory backend at startup
    DEBUG_SEED_ENABLED = os.environ.get("DEBUG_SEED_ENABLED", "false").lower() == "true"
