# backend/jaguar/routes/system.py
"""
System health endpoint.

Reports on the configured storage backend so deployments can tell a broken
database from a broken app.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..repositories import get_repositories
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_storage_health() -> dict:
    """
    Check the storage backend with a trivial read.

    Returns dict with status and details.
    """
    backend = current_app.config["STORAGE_BACKEND"]
    start_time = time.time()
    try:
        if backend != "memory":
            db.session.execute(text("SELECT 1"))
        supplier_count = len(get_repositories().suppliers.find())

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "backend": backend,
            "latency_ms": round(elapsed_ms, 2),
            "details": {"proveedores": supplier_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Storage health check failed")
        return {
            "status": "unhealthy",
            "backend": backend,
            "latency_ms": round(elapsed_ms, 2),
            "error": "Storage error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: storage reachable
    - 503: storage unhealthy
    """
    start_time = time.time()
    storage_health = check_storage_health()
    http_status = 200 if storage_health["status"] == "healthy" else 503

    response = {
        "status": storage_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {"storage": storage_health},
    }
    return response, http_status
