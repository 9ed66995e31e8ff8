# Overview: Health and version endpoints.

import platform
import time

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def probe_database() -> dict:
    """Round-trip a trivial query and report how long it took."""
    started = time.perf_counter()
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("Database probe failed")
        db.session.rollback()
        return {"status": "unhealthy", "error": "Database error"}

    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
    }


@system_bp.get("/health")
def health():
    """
    200 when the database answers, 503 otherwise.

    The identity provider is not probed; its outages surface as 502 on
    authenticated routes.
    """
    database = probe_database()
    healthy = database["status"] == "healthy"

    return {
        "status": database["status"],
        "checked_at": to_utc_z(utcnow()),
        "identity_provider": current_app.config.get("IDENTITY_PROVIDER"),
        "checks": {"database": database},
    }, (200 if healthy else 503)


@system_bp.get("/version")
def version():
    return {
        "api_version": API_VERSION,
        "environment": "development" if current_app.debug else "production",
        "python_version": platform.python_version(),
        "server_time": to_utc_z(utcnow()),
    }
