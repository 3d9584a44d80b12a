"""
Calendar blueprint.

    GET /api/v1/calendar?view=week|workweek|month&date=YYYY-MM-DD&project_id=
"""

from flask import Blueprint, jsonify, request

from buildtrack.domain.dates import coerce_date
from buildtrack.services.dashboard_service import CALENDAR_VIEWS, calendar_view
from buildtrack.utils.errors import E, api_error, register_error_handlers

calendar_bp = Blueprint("calendar", __name__, url_prefix="/api/v1")
register_error_handlers(calendar_bp)


@calendar_bp.route("/calendar", methods=["GET"])
def get_calendar():
    view = request.args.get("view", "week")
    if view not in CALENDAR_VIEWS:
        return api_error(E.VALIDATION_INVALID, f"view must be one of {', '.join(CALENDAR_VIEWS)}")

    raw_date = request.args.get("date")
    ref = coerce_date(raw_date)
    if raw_date and ref is None:
        return api_error(E.VALIDATION_INVALID, "date must be YYYY-MM-DD")

    project_id = request.args.get("project_id", type=int)
    return jsonify(calendar_view(ref, view=view, project_id=project_id))
