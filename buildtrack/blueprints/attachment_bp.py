"""
Attachment blueprint.

Endpoints:
    GET    /api/v1/projects/<pid>/attachments        list (optional task_id | rfi_id | submittal_id)
    POST   /api/v1/projects/<pid>/attachments        multipart ``files`` (+ one owner key)
    GET    /api/v1/attachments/<id>/download         file bytes
    DELETE /api/v1/attachments/<id>                  storage object, then row
"""

import io
import logging

from flask import Blueprint, jsonify, request, send_file

from buildtrack.blueprints import file_storage
from buildtrack.models.project import Project
from buildtrack.services import attachment_service
from buildtrack.utils.errors import E, api_error, register_error_handlers
from buildtrack.utils.helpers import db_commit_or_error, get_or_404

logger = logging.getLogger(__name__)

attachment_bp = Blueprint("attachments", __name__, url_prefix="/api/v1")
register_error_handlers(attachment_bp)


@attachment_bp.route("/projects/<int:pid>/attachments", methods=["GET"])
def list_attachments(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    owner_key, owner_id = attachment_service.resolve_owner(project, request.args)
    rows = attachment_service.list_attachments(project, owner_key, owner_id)
    return jsonify({"items": [a.to_dict() for a in rows], "total": len(rows)})


@attachment_bp.route("/projects/<int:pid>/attachments", methods=["POST"])
def upload_attachments(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    files = [f for f in request.files.getlist("files") if f and f.filename]
    if not files:
        return api_error(E.VALIDATION_REQUIRED, "files is required")

    owner_key, owner_id = attachment_service.resolve_owner(project, request.form)
    result = attachment_service.upload_attachments(
        project, files, file_storage(),
        owner_key=owner_key, owner_id=owner_id,
        uploaded_by=request.form.get("uploaded_by", ""),
    )
    # Partial success is still a 201; nothing stored at all is an upstream failure
    status = 201 if result["uploaded"] else 502
    return jsonify(result), status


@attachment_bp.route("/attachments/<int:attachment_id>/download", methods=["GET"])
def download_attachment(attachment_id):
    attachment = attachment_service.get_attachment(attachment_id)
    data = attachment_service.read_attachment(attachment, file_storage())
    return send_file(
        io.BytesIO(data),
        mimetype=attachment.file_type or "application/octet-stream",
        as_attachment=True,
        download_name=attachment.file_name,
    )


@attachment_bp.route("/attachments/<int:attachment_id>", methods=["DELETE"])
def delete_attachment(attachment_id):
    attachment = attachment_service.get_attachment(attachment_id)
    attachment_service.delete_attachment(attachment, file_storage())
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Attachment deleted", "id": attachment_id}), 200
