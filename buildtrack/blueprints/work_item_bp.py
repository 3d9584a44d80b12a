"""
Work-item blueprint — tasks, RFIs, submittals and milestones, plus the
Kanban board.

Endpoints summary (<kind> is tasks | rfis | submittals | milestones):
    /api/v1/projects/<pid>/<kind>                  GET (status, priority, search, sort, order), POST
    /api/v1/<kind>/<id>                            GET, PUT, DELETE
    /api/v1/<kind>/<id>/status                     PATCH
    /api/v1/milestones/<id>/toggle                 POST
    /api/v1/projects/<pid>/board/<kind>            GET
    /api/v1/projects/<pid>/board/<kind>/move       POST  {item_id, status}

POST accepts JSON, or multipart with the JSON payload in a ``data`` field
and files under ``files``; the item is committed first, then each file is
uploaded on its own (``attachments.uploaded`` / ``attachments.failed``).
"""

import json
import logging

from flask import Blueprint, jsonify, request

from buildtrack.blueprints import file_storage, paginate_list
from buildtrack.domain.dates import coerce_date
from buildtrack.domain.filters import filter_items, sort_items, summarize
from buildtrack.domain.statuses import MILESTONE, RFI, SUBMITTAL, TASK
from buildtrack.models.project import Project
from buildtrack.models.work_items import Milestone
from buildtrack.services import attachment_service, dashboard_service, work_item_service
from buildtrack.services.work_item_service import LABELS, TITLE_FIELD, item_type_for_kind
from buildtrack.utils.errors import E, api_error, register_error_handlers
from buildtrack.utils.helpers import db_commit_or_error, get_or_404, require_fields

logger = logging.getLogger(__name__)

work_item_bp = Blueprint("work_items", __name__, url_prefix="/api/v1")
register_error_handlers(work_item_bp)

KINDS = "any(tasks, rfis, submittals, milestones)"

_SEARCH_FIELDS = {
    TASK: ("title", "description"),
    RFI: ("subject", "rfi_number", "project_number"),
    SUBMITTAL: ("title", "submittal_number", "spec_section", "project_number"),
    MILESTONE: ("name", "description"),
}

_COMMON_SORT = ("status", "priority", "due_date", "created_at", "updated_at")

# Recipient objects are not orderable, so ``assignee`` / ``recipient`` are left out
_SORT_FIELDS = {
    TASK: _COMMON_SORT + ("title", "completed_date"),
    RFI: _COMMON_SORT + ("rfi_number", "subject", "date_sent", "answered_date"),
    SUBMITTAL: _COMMON_SORT + ("submittal_number", "title", "spec_section", "submittal_type",
                               "date_submitted", "approved_date"),
    MILESTONE: _COMMON_SORT + ("name", "completed_date"),
}

_OWNER_KEY = {TASK: "task_id", RFI: "rfi_id", SUBMITTAL: "submittal_id"}


def _payload():
    """JSON body, or the ``data`` field of a multipart form."""
    if request.mimetype == "multipart/form-data":
        raw = request.form.get("data") or "{}"
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
    return request.get_json(silent=True) or {}


# ═══════════════════════════════════════════════════════════════════════════
#  LIST / CREATE
# ═══════════════════════════════════════════════════════════════════════════

@work_item_bp.route(f"/projects/<int:pid>/<{KINDS}:kind>", methods=["GET"])
def list_items(pid, kind):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    item_type = item_type_for_kind(kind)
    today = coerce_date(request.args.get("today"))
    sort_key = request.args.get("sort")
    if sort_key and sort_key not in _SORT_FIELDS[item_type]:
        return api_error(
            E.VALIDATION_INVALID,
            f"Cannot sort {kind} by {sort_key!r}",
            details={"sort": "invalid", "allowed": list(_SORT_FIELDS[item_type])},
        )

    rows = work_item_service.project_item_dicts(project, item_type)
    rows = filter_items(
        rows,
        item_type,
        status=request.args.get("status", "all"),
        priority=request.args.get("priority", "all"),
        search=(request.args.get("search") or "").strip(),
        search_fields=_SEARCH_FIELDS[item_type],
        today=today,
    )
    if sort_key:
        rows = sort_items(rows, sort_key, descending=request.args.get("order") == "desc")

    page, total = paginate_list(rows)
    return jsonify({
        "items": page,
        "total": total,
        "summary": summarize(rows, item_type, today),
    })


@work_item_bp.route(f"/projects/<int:pid>/<{KINDS}:kind>", methods=["POST"])
def create_item(pid, kind):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    item_type = item_type_for_kind(kind)

    data = _payload()
    if data is None:
        return api_error(E.VALIDATION_INVALID, "data must be a JSON object")
    err = require_fields(data, TITLE_FIELD[item_type])
    if err:
        return err

    item = work_item_service.create_item(project, item_type, data)
    err = db_commit_or_error()
    if err:
        return err

    result = item.to_dict()
    files = request.files.getlist("files") if request.files else []
    if files and item_type in _OWNER_KEY:
        result["attachments"] = attachment_service.upload_attachments(
            project, files, file_storage(),
            owner_key=_OWNER_KEY[item_type], owner_id=item.id,
            uploaded_by=data.get("created_by") or "",
        )
    return jsonify(result), 201


# ═══════════════════════════════════════════════════════════════════════════
#  DETAIL / UPDATE / DELETE
# ═══════════════════════════════════════════════════════════════════════════

@work_item_bp.route(f"/<{KINDS}:kind>/<int:item_id>", methods=["GET"])
def get_item(kind, item_id):
    item = work_item_service.get_item(item_type_for_kind(kind), item_id)
    return jsonify(item.to_dict())


@work_item_bp.route(f"/<{KINDS}:kind>/<int:item_id>", methods=["PUT"])
def update_item(kind, item_id):
    item = work_item_service.get_item(item_type_for_kind(kind), item_id)
    data = request.get_json(silent=True) or {}

    work_item_service.update_item(item, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(item.to_dict())


@work_item_bp.route(f"/<{KINDS}:kind>/<int:item_id>", methods=["DELETE"])
def delete_item(kind, item_id):
    item_type = item_type_for_kind(kind)
    item = work_item_service.get_item(item_type, item_id)

    work_item_service.delete_item(item, storage=file_storage())
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": f"{LABELS[item_type]} deleted", "id": item_id}), 200


@work_item_bp.route(f"/<{KINDS}:kind>/<int:item_id>/status", methods=["PATCH"])
def patch_status(kind, item_id):
    data = request.get_json(silent=True) or {}
    err = require_fields(data, "status")
    if err:
        return err

    item = work_item_service.change_status(item_type_for_kind(kind), item_id, data["status"])
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(item.to_dict())


@work_item_bp.route("/milestones/<int:item_id>/toggle", methods=["POST"])
def toggle_milestone(item_id):
    milestone, err = get_or_404(Milestone, item_id)
    if err:
        return err
    work_item_service.toggle_milestone(milestone)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(milestone.to_dict())


# ═══════════════════════════════════════════════════════════════════════════
#  KANBAN
# ═══════════════════════════════════════════════════════════════════════════

@work_item_bp.route(f"/projects/<int:pid>/board/<{KINDS}:kind>", methods=["GET"])
def get_board(pid, kind):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    item_type = item_type_for_kind(kind)
    board = dashboard_service.load_board(project, item_type)
    return jsonify({
        "item_type": item_type,
        "columns": board.columns(),
        "off_board": len(board.off_board()),
    })


@work_item_bp.route(f"/projects/<int:pid>/board/<{KINDS}:kind>/move", methods=["POST"])
def move_card(pid, kind):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    err = require_fields(data, "item_id", "status")
    if err:
        return err
    try:
        item_id = int(data["item_id"])
    except (TypeError, ValueError):
        return api_error(E.VALIDATION_INVALID, "item_id must be an integer")

    # MoveFailedError (reverted board) is mapped by the blueprint handler
    result = dashboard_service.move_on_board(project, item_type_for_kind(kind), item_id, data["status"])
    return jsonify(result)
