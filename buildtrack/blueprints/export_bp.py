"""
Log exports.

    GET /api/v1/projects/<pid>/rfis/export.xlsx
    GET /api/v1/projects/<pid>/submittals/export.xlsx

Both accept the list filters (``status``, ``search``). Content is built in
memory; no temp files.
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, request, send_file

from buildtrack.domain.filters import filter_rfis, filter_submittals
from buildtrack.domain.statuses import RFI, SUBMITTAL
from buildtrack.models.project import Project
from buildtrack.services.export_service import export_rfi_log_xlsx, export_submittal_log_xlsx
from buildtrack.services.work_item_service import project_item_dicts
from buildtrack.utils.errors import register_error_handlers
from buildtrack.utils.helpers import get_or_404

logger = logging.getLogger(__name__)

export_bp = Blueprint("exports", __name__, url_prefix="/api/v1")
register_error_handlers(export_bp)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _send(buf, project, name):
    date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
    return send_file(
        buf,
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=f"{project.project_number}_{name}_{date_str}.xlsx",
    )


@export_bp.route("/projects/<int:pid>/rfis/export.xlsx", methods=["GET"])
def export_rfis(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    rfis = filter_rfis(
        project_item_dicts(project, RFI),
        status=request.args.get("status", "all"),
        search=request.args.get("search", ""),
    )
    logger.info("RFI log export: project=%s rows=%d", project.project_number, len(rfis))
    return _send(export_rfi_log_xlsx(project.to_dict(), rfis), project, "RFI_Log")


@export_bp.route("/projects/<int:pid>/submittals/export.xlsx", methods=["GET"])
def export_submittals(pid):
    project, err = get_or_404(Project, pid)
    if err:
        return err
    submittals = filter_submittals(
        project_item_dicts(project, SUBMITTAL),
        status=request.args.get("status", "all"),
        search=request.args.get("search", ""),
    )
    logger.info("Submittal log export: project=%s rows=%d", project.project_number, len(submittals))
    return _send(export_submittal_log_xlsx(project.to_dict(), submittals), project, "Submittal_Log")
