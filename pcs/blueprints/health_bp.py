"""
Health probes.

    GET /api/v1/health/ready  — process is up (no dependencies touched)
    GET /api/v1/health/live   — database round-trip and schema presence
"""

import logging
import time

from flask import Blueprint, jsonify
from sqlalchemy import inspect, text

from pcs.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")

REQUIRED_TABLES = ("users", "clients", "projects", "scopes", "tickets", "comments", "notifications")


def _probe_database() -> dict:
    started = time.perf_counter()
    db.session.execute(text("SELECT 1"))
    latency = round((time.perf_counter() - started) * 1000, 1)
    missing = sorted(set(REQUIRED_TABLES) - set(inspect(db.engine).get_table_names()))
    result = {"status": "ok" if not missing else "error", "latency_ms": latency}
    if missing:
        result["missing_tables"] = missing
    return result


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    try:
        database = _probe_database()
    except Exception as exc:
        logger.error("Liveness probe: database unreachable: %s", exc)
        db.session.rollback()
        database = {"status": "error", "detail": str(exc)}

    healthy = database["status"] == "ok"
    body = {"status": "ok" if healthy else "degraded", "checks": {"database": database}}
    return jsonify(body), 200 if healthy else 503
