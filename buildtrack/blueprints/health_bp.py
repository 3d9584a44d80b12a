"""
Health probes for the load balancer and uptime monitor.

    GET /api/v1/health         same as /ready
    GET /api/v1/health/ready   process is up
    GET /api/v1/health/live    database round trip plus storage backend
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from buildtrack.models import db
from buildtrack.services.storage import LocalFileStorage, S3FileStorage

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("", methods=["GET"])
@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


def _database_check():
    started = time.perf_counter()
    try:
        db.session.execute(db.text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Health check: database unreachable: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


def _storage_check():
    store = current_app.extensions.get("file_storage")
    if store is None:
        return {"status": "missing"}
    if isinstance(store, S3FileStorage):
        return {"status": "ok", "backend": "s3", "bucket": store.bucket}
    if isinstance(store, LocalFileStorage):
        return {"status": "ok", "backend": "local", "root": store.root}
    return {"status": "ok", "backend": type(store).__name__}


@health_bp.route("/live", methods=["GET"])
def live():
    """Dependency status; 503 when the database or storage is unusable."""
    checks = {"database": _database_check(), "storage": _storage_check()}
    healthy = all(check["status"] == "ok" for check in checks.values())
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
        "testing": current_app.testing,
    }), 200 if healthy else 503
