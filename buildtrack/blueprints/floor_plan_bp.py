"""
Floor plan blueprint — plans and their item markers.

Endpoints:
    GET    /api/v1/projects/<pid>/floor-plans          list active (include_inactive=1 for all)
    POST   /api/v1/projects/<pid>/floor-plans          multipart ``file`` + name, page_count
    GET    /api/v1/floor-plans/<id>                    plan with markers
    DELETE /api/v1/floor-plans/<id>                    soft delete
    GET    /api/v1/floor-plans/<id>/markers            list
    POST   /api/v1/floor-plans/<id>/markers            {item_type, item_id, x_percent, y_percent, page_number, label}
    PUT    /api/v1/markers/<id>                        move / relabel
    DELETE /api/v1/markers/<id>
    GET    /api/v1/<item_type>/<item_id>/markers       markers pointing at one RFI / submittal / task
"""

import logging

from flask import Blueprint, jsonify, request

from buildtrack.blueprints import file_storage
from buildtrack.models.project import Project
from buildtrack.services import floor_plan_service
from buildtrack.utils.errors import E, api_error, register_error_handlers
from buildtrack.utils.helpers import db_commit_or_error, get_or_404, require_fields

logger = logging.getLogger(__name__)

floor_plan_bp = Blueprint("floor_plans", __name__, url_prefix="/api/v1")
register_error_handlers(floor_plan_bp)


@floor_plan_bp.route("/projects/<int:pid>/floor-plans", methods=["GET"])
def list_floor_plans(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    include_inactive = request.args.get("include_inactive") == "1"
    plans = floor_plan_service.list_floor_plans(project, include_inactive=include_inactive)
    return jsonify({"items": [p.to_dict() for p in plans], "total": len(plans)})


@floor_plan_bp.route("/projects/<int:pid>/floor-plans", methods=["POST"])
def upload_floor_plan(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return api_error(E.VALIDATION_REQUIRED, "file is required")

    plan = floor_plan_service.upload_floor_plan(
        project, upload, file_storage(),
        name=request.form.get("name"),
        page_count=request.form.get("page_count", 1),
        uploaded_by=request.form.get("uploaded_by", ""),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(plan.to_dict()), 201


@floor_plan_bp.route("/floor-plans/<int:plan_id>", methods=["GET"])
def get_floor_plan(plan_id):
    plan = floor_plan_service.get_floor_plan(plan_id)
    return jsonify(plan.to_dict(include_markers=True))


@floor_plan_bp.route("/floor-plans/<int:plan_id>", methods=["DELETE"])
def delete_floor_plan(plan_id):
    plan = floor_plan_service.get_floor_plan(plan_id)
    floor_plan_service.deactivate_floor_plan(plan)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Floor plan removed", "id": plan_id}), 200


# ── Markers ─────────────────────────────────────────────────────────────────

@floor_plan_bp.route("/floor-plans/<int:plan_id>/markers", methods=["GET"])
def list_markers(plan_id):
    plan = floor_plan_service.get_floor_plan(plan_id)
    return jsonify({"items": [m.to_dict() for m in plan.markers], "total": len(plan.markers)})


@floor_plan_bp.route("/floor-plans/<int:plan_id>/markers", methods=["POST"])
def add_marker(plan_id):
    plan = floor_plan_service.get_floor_plan(plan_id)
    data = request.get_json(silent=True) or {}
    err = require_fields(data, "item_type", "item_id", "x_percent", "y_percent")
    if err:
        return err

    marker = floor_plan_service.add_marker(plan, data, created_by=data.get("created_by", ""))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(marker.to_dict()), 201


@floor_plan_bp.route("/markers/<int:marker_id>", methods=["PUT"])
def update_marker(marker_id):
    marker = floor_plan_service.get_marker(marker_id)
    data = request.get_json(silent=True) or {}
    floor_plan_service.update_marker(marker, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(marker.to_dict())


@floor_plan_bp.route("/markers/<int:marker_id>", methods=["DELETE"])
def delete_marker(marker_id):
    marker = floor_plan_service.get_marker(marker_id)
    floor_plan_service.delete_marker(marker)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Marker deleted", "id": marker_id}), 200


@floor_plan_bp.route("/<any(rfis, submittals, tasks):kind>/<int:item_id>/markers", methods=["GET"])
def item_markers(kind, item_id):
    item_type = kind[:-1]
    return jsonify({"items": floor_plan_service.markers_for_item(item_type, item_id)})
