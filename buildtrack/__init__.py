"""
BuildTrack: modular construction project management API.

Flask application factory.

Usage:
    from buildtrack import create_app
    app = create_app()                       # APP_ENV or "development"
    app = create_app("testing", storage=s)   # inject a FileStorage
"""

import logging
import os

from flask import Flask, request, send_from_directory
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import SQLAlchemyError

from buildtrack.config import config
from buildtrack.middleware.logging_config import configure_logging
from buildtrack.middleware.rate_limiter import init_rate_limits
from buildtrack.middleware.timing import init_request_timing
from buildtrack.models import db
from buildtrack.services.storage import LocalFileStorage, storage_from_config

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Attachments and markers rely on ON DELETE CASCADE; SQLite needs it switched on."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)

# (module, blueprint attribute), in registration order
BLUEPRINTS = (
    ("buildtrack.blueprints.project_bp", "project_bp"),
    ("buildtrack.blueprints.work_item_bp", "work_item_bp"),
    ("buildtrack.blueprints.attachment_bp", "attachment_bp"),
    ("buildtrack.blueprints.floor_plan_bp", "floor_plan_bp"),
    ("buildtrack.blueprints.calendar_bp", "calendar_bp"),
    ("buildtrack.blueprints.production_bp", "production_bp"),
    ("buildtrack.blueprints.export_bp", "export_bp"),
    ("buildtrack.blueprints.health_bp", "health_bp"),
)


def _register_blueprints(app):
    import importlib

    for module_name, attr in BLUEPRINTS:
        app.register_blueprint(getattr(importlib.import_module(module_name), attr))


def _register_json_errors(app):
    """App-wide fallbacks for errors raised outside a blueprint's own handlers."""

    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        limit_mb = (app.config.get("MAX_CONTENT_LENGTH") or 0) // (1024 * 1024)
        return {"error": f"Upload exceeds the {limit_mb} MB limit"}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("Unhandled error on %s %s: %s", request.method, request.path, e, exc_info=True)
        return {"error": "Internal server error"}, 500


def _serve_local_files(app, store):
    """Expose LocalFileStorage objects at their public URL prefix."""

    @app.route(f"{store.base_url}/<path:path>")
    def serve_file(path):
        return send_from_directory(store.root, path)


def create_app(config_name=None, storage=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: "development", "testing" or "production".
                     Defaults to the APP_ENV env var, else "development".
        storage: Optional ``FileStorage`` used instead of the backend named
                 by ``STORAGE_BACKEND``.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    cfg = config[config_name]
    # ProductionConfig validates required env vars on instantiation
    app.config.from_object(cfg() if config_name == "production" else cfg)

    configure_logging(app)
    os.makedirs(app.instance_path, exist_ok=True)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    app.config.setdefault("RATELIMIT_STORAGE_URI", "memory://")
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    store = storage or storage_from_config(app.config)
    app.extensions["file_storage"] = store

    init_request_timing(app)

    # Register tables on the metadata before create_all
    from buildtrack.models import attachment, floor_plan, production, project, work_items  # noqa: F401

    # CREATE IF NOT EXISTS only; schema changes go through migrations/
    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as exc:
            app.logger.warning("db.create_all() skipped: %s", exc)

    _register_blueprints(app)
    if isinstance(store, LocalFileStorage) and store.base_url.startswith("/"):
        _serve_local_files(app, store)
    _register_json_errors(app)

    # after blueprints, so per-blueprint limits can attach
    init_rate_limits(app, limiter)

    app.logger.debug("BuildTrack app created: env=%s storage=%s", config_name, type(store).__name__)
    return app
