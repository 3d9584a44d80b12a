"""
Production blueprint — factory modules and QC inspections.

Endpoints:
    GET/POST  /api/v1/projects/<pid>/modules
    PUT       /api/v1/modules/<id>
    GET/POST  /api/v1/modules/<id>/qc
    GET       /api/v1/projects/<pid>/qc-summary
"""

from flask import Blueprint, jsonify, request

from buildtrack.models.production import QCRecord
from buildtrack.models.project import Project
from buildtrack.services import production_service
from buildtrack.utils.errors import register_error_handlers
from buildtrack.utils.helpers import db_commit_or_error, get_or_404, require_fields

production_bp = Blueprint("production", __name__, url_prefix="/api/v1")
register_error_handlers(production_bp)


@production_bp.route("/projects/<int:pid>/modules", methods=["GET"])
def list_modules(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    modules = production_service.list_modules(project, status=request.args.get("status"))
    return jsonify({"items": [m.to_dict() for m in modules], "total": len(modules)})


@production_bp.route("/projects/<int:pid>/modules", methods=["POST"])
def create_module(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    err = require_fields(data, "serial_number")
    if err:
        return err

    module = production_service.create_module(project, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(module.to_dict()), 201


@production_bp.route("/modules/<int:module_id>", methods=["PUT"])
def update_module(module_id):
    module = production_service.get_module(module_id)
    production_service.update_module(module, request.get_json(silent=True) or {})
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(module.to_dict())


@production_bp.route("/modules/<int:module_id>/qc", methods=["GET"])
def list_qc(module_id):
    module = production_service.get_module(module_id)
    records = module.qc_records.order_by(QCRecord.inspected_at, QCRecord.id).all()
    return jsonify({"items": [r.to_dict() for r in records], "total": len(records)})


@production_bp.route("/modules/<int:module_id>/qc", methods=["POST"])
def record_qc(module_id):
    module = production_service.get_module(module_id)
    record = production_service.record_qc(module, request.get_json(silent=True) or {})
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"record": record.to_dict(), "module": module.to_dict()}), 201


@production_bp.route("/projects/<int:pid>/qc-summary", methods=["GET"])
def qc_summary(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    return jsonify(production_service.qc_summary(project))
