"""
Project blueprint — project CRUD, overview and factory catalogue.

Endpoints:
    GET    /api/v1/projects                    list (status, factory, search, include_closed)
    POST   /api/v1/projects                    create
    GET    /api/v1/projects/<pid>              detail
    PUT    /api/v1/projects/<pid>              update
    DELETE /api/v1/projects/<pid>              rejected: close via status instead
    GET    /api/v1/projects/<pid>/overview     health, attention, key dates, counts
    GET    /api/v1/factories                   factory catalogue
"""

import logging

from flask import Blueprint, jsonify, request

from buildtrack.blueprints import paginate_query
from buildtrack.domain.dates import coerce_date
from buildtrack.models.project import Project
from buildtrack.services import dashboard_service, project_service
from buildtrack.utils.errors import E, api_error, register_error_handlers
from buildtrack.utils.helpers import db_commit_or_error, get_or_404, require_fields

logger = logging.getLogger(__name__)

project_bp = Blueprint("projects", __name__, url_prefix="/api/v1")
register_error_handlers(project_bp)


@project_bp.route("/projects", methods=["GET"])
def list_projects():
    include_closed = request.args.get("include_closed", "1") != "0"
    q = project_service.list_projects(
        status=request.args.get("status"),
        factory=request.args.get("factory"),
        search=request.args.get("search"),
        include_closed=include_closed,
    )
    projects, total = paginate_query(q)
    return jsonify({"items": [p.to_dict() for p in projects], "total": total})


@project_bp.route("/projects", methods=["POST"])
def create_project():
    data = request.get_json(silent=True) or {}
    err = require_fields(data, "project_number", "name")
    if err:
        return err

    project = project_service.create_project(data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(project.to_dict()), 201


@project_bp.route("/projects/<int:pid>", methods=["GET"])
def get_project(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    return jsonify(project.to_dict())


@project_bp.route("/projects/<int:pid>", methods=["PUT"])
def update_project(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    data = request.get_json(silent=True) or {}

    project_service.update_project(project, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(project.to_dict())


@project_bp.route("/projects/<int:pid>", methods=["DELETE"])
def delete_project(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    return api_error(
        E.CONFLICT_STATE,
        "Projects cannot be deleted; set status to Cancelled or Completed",
        details={"allowed_statuses": ["Cancelled", "Completed"]},
    )


@project_bp.route("/projects/<int:pid>/overview", methods=["GET"])
def project_overview(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    today = coerce_date(request.args.get("today"))
    return jsonify(dashboard_service.project_overview(project, today=today))


@project_bp.route("/factories", methods=["GET"])
def list_factories():
    return jsonify(project_service.factory_catalog())
